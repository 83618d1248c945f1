from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..http_client import HttpClient
from ..snapshots import SampleSnapshots
from .session_gateway import SessionGateway


@dataclass
class BaseClient:
    http: HttpClient
    gateway: SessionGateway
    snapshots: SampleSnapshots = field(default_factory=SampleSnapshots)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Ensure the session, then send; re-bootstraps once on an expired session."""
        return self.gateway.call(lambda: self.http.request(method, path, **kwargs))

    def _status(self) -> int:
        last = self.http.last_call
        return last.status_code if last else 0

    def _trace_id(self) -> str | None:
        return self.http.trace.trace_id if self.http.trace else None
