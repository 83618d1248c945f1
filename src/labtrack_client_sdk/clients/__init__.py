from .print_gateway import PrintGatewayForwarder
from .samples_client import SamplesClient
from .session_gateway import SessionGateway
from .stations_client import StationDirectory, StationsClient
from .transitions_client import TransitionsClient

__all__ = [
    "PrintGatewayForwarder",
    "SamplesClient",
    "SessionGateway",
    "StationDirectory",
    "StationsClient",
    "TransitionsClient",
]
