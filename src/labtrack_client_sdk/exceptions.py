from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass
class LabTrackError(Exception):
    code: str
    message: str
    details: object | None = None
    trace_id: str | None = None
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class TransportError(LabTrackError):
    """Network/transport failure before an HTTP response was returned."""


class HttpError(LabTrackError):
    """Non-2xx response that did not carry a negative envelope."""

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"HTTP {self.status_code}: {self.message}{trace}"


class ProtocolError(LabTrackError):
    """Response body did not match the expected envelope shape."""


class ApiError(LabTrackError):
    """Structured business rejection: ``{ok: false, error: {code, message}}``."""


class AuthError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class VersionConflictError(ConflictError):
    """The sample changed server-side since the version the client sent."""


class DuplicateCodeError(ConflictError):
    pass


class SampleLockedError(ApiError):
    pass


class ServerError(ApiError):
    """5xx failures that still answered with an envelope."""


class PreconditionError(LabTrackError):
    """Refused client-side; no request was sent."""


class MissingStationError(PreconditionError):
    pass


class StepBoundaryError(PreconditionError):
    pass


class StaleVersionError(PreconditionError):
    pass


class ClientValidationError(PreconditionError):
    pass


class ActionInFlightError(PreconditionError):
    pass


class QrRenderError(PreconditionError):
    """The QR label image could not be produced."""


class AuthFailure(LabTrackError):
    """Session bootstrap failed. Concrete classes also derive from the failure kind."""


class SessionTransportError(AuthFailure, TransportError):
    pass


class SessionHttpError(AuthFailure, HttpError):
    pass


class SessionApiError(AuthFailure, ApiError):
    pass


class SessionProtocolError(AuthFailure, ProtocolError):
    pass


def error_kind(error: BaseException) -> str:
    if isinstance(error, TransportError):
        return "transport"
    if isinstance(error, HttpError):
        return "http"
    if isinstance(error, ApiError):
        return "api"
    if isinstance(error, ProtocolError):
        return "protocol"
    if isinstance(error, PreconditionError):
        return "precondition"
    return "unknown"


def is_authorization_failure(error: BaseException) -> bool:
    if isinstance(error, AuthFailure):
        return False
    if isinstance(error, (AuthError, HttpError)):
        return error.status_code == 401
    return False


def error_fields(error: LabTrackError) -> dict[str, object]:
    """Constructor arguments to re-raise ``error`` as a more specific class."""
    return {item.name: getattr(error, item.name) for item in fields(error)}
