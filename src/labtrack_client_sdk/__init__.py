from .clients import (
    PrintGatewayForwarder,
    SamplesClient,
    SessionGateway,
    StationDirectory,
    StationsClient,
    TransitionsClient,
)
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ActionInFlightError,
    ApiError,
    AuthError,
    AuthFailure,
    ClientValidationError,
    ConflictError,
    DuplicateCodeError,
    HttpError,
    LabTrackError,
    MissingStationError,
    NotFoundError,
    PreconditionError,
    ProtocolError,
    QrRenderError,
    SampleLockedError,
    ServerError,
    StaleVersionError,
    StepBoundaryError,
    TransportError,
    ValidationError,
    VersionConflictError,
)
from .http_client import HttpClient
from .listing import ListingState
from .models import (
    PrintJob,
    PrintResult,
    ProbeResult,
    Sample,
    SampleCreate,
    SampleCreateResult,
    SampleDetail,
    SampleQuery,
    SampleUpdate,
    SortOrder,
    Station,
    Step,
    TransitionDirection,
    TransitionResult,
)
from .qr import render_qr_png
from .session import LabTrackSession
from .snapshots import SampleSnapshots
from .tracing import TraceContext
from .ui_errors import UserFacingError, format_error, to_user_facing_error

__version__ = "0.1.0"

__all__ = [
    "ActionInFlightError",
    "ApiError",
    "AuthError",
    "AuthFailure",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "DuplicateCodeError",
    "HttpClient",
    "HttpError",
    "LabTrackError",
    "LabTrackSession",
    "ListingState",
    "MissingStationError",
    "NotFoundError",
    "PreconditionError",
    "PrintGatewayForwarder",
    "PrintJob",
    "PrintResult",
    "ProbeResult",
    "ProtocolError",
    "QrRenderError",
    "Sample",
    "SampleCreate",
    "SampleCreateResult",
    "SampleDetail",
    "SampleLockedError",
    "SampleQuery",
    "SampleSnapshots",
    "SampleUpdate",
    "SamplesClient",
    "ServerError",
    "SessionGateway",
    "SortOrder",
    "StaleVersionError",
    "Station",
    "StationDirectory",
    "StationsClient",
    "Step",
    "StepBoundaryError",
    "TraceContext",
    "TransitionDirection",
    "TransitionResult",
    "TransitionsClient",
    "TransportError",
    "UserFacingError",
    "ValidationError",
    "VersionConflictError",
    "format_error",
    "load_config",
    "render_qr_png",
    "to_user_facing_error",
]
