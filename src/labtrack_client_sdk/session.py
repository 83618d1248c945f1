from __future__ import annotations

from dataclasses import dataclass

from .clients.print_gateway import PrintGatewayForwarder
from .clients.samples_client import SamplesClient
from .clients.session_gateway import SessionGateway
from .clients.stations_client import StationsClient
from .clients.transitions_client import TransitionsClient
from .config import ClientConfig
from .http_client import HttpClient
from .snapshots import SampleSnapshots
from .tracing import TraceContext


@dataclass
class LabTrackSession:
    """One login shared by every client: a single HTTP session, gateway and snapshot store."""

    config: ClientConfig
    http: HttpClient | None = None
    gateway: SessionGateway | None = None
    snapshots: SampleSnapshots | None = None

    def __post_init__(self) -> None:
        if self.http is None:
            self.http = HttpClient(config=self.config, trace=TraceContext())
        if self.gateway is None:
            self.gateway = SessionGateway(http=self.http)
        if self.snapshots is None:
            self.snapshots = SampleSnapshots()

    def samples_client(self) -> SamplesClient:
        return SamplesClient(
            http=self.http,
            gateway=self.gateway,
            snapshots=self.snapshots,
            default_limit=self.config.default_list_limit,
        )

    def stations_client(self) -> StationsClient:
        return StationsClient(http=self.http, gateway=self.gateway, snapshots=self.snapshots)

    def transitions_client(self) -> TransitionsClient:
        return TransitionsClient(http=self.http, gateway=self.gateway, snapshots=self.snapshots)

    def print_gateway(self) -> PrintGatewayForwarder:
        return PrintGatewayForwarder(
            http=self.http,
            gateway=self.gateway,
            qr_size=self.config.qr_size,
            qr_margin=self.config.qr_margin,
        )

    def ensure_session(self) -> None:
        self.gateway.ensure_session()

    def logout(self) -> bool:
        ok = self.gateway.logout()
        self.snapshots.clear()
        return ok
