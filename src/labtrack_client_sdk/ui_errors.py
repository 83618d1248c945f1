from __future__ import annotations

from dataclasses import dataclass

from .exceptions import (
    ApiError,
    HttpError,
    LabTrackError,
    PreconditionError,
    ProtocolError,
    TransportError,
    VersionConflictError,
    error_kind,
)

VERSION_CONFLICT_MESSAGE = (
    "This sample was changed by someone else. Reload it and try the action again."
)


@dataclass(frozen=True)
class UserFacingError:
    kind: str
    message: str
    retry_hint: str
    details: str | None = None
    trace_id: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def _retry_hint(exc: BaseException) -> str:
    if isinstance(exc, VersionConflictError):
        return "refresh"
    if isinstance(exc, (TransportError, HttpError)):
        return "manual"
    if isinstance(exc, ProtocolError):
        return "report"
    return "none"


def to_user_facing_error(exc: BaseException) -> UserFacingError:
    kind = error_kind(exc)
    hint = _retry_hint(exc)
    if not isinstance(exc, LabTrackError):
        return UserFacingError(kind=kind, message=str(exc) or type(exc).__name__, retry_hint=hint)

    if isinstance(exc, VersionConflictError):
        primary = f"{VERSION_CONFLICT_MESSAGE} ({exc.message.strip()})" if exc.message.strip() else VERSION_CONFLICT_MESSAGE
        details = f"{exc.code} (HTTP {exc.status_code})"
    elif isinstance(exc, ApiError):
        primary = exc.message.strip() or exc.code
        details = f"{exc.code} (HTTP {exc.status_code})"
    elif isinstance(exc, HttpError):
        primary = f"HTTP {exc.status_code}"
        details = exc.message or None
    elif isinstance(exc, ProtocolError):
        primary = f"Unexpected response from server (HTTP {exc.status_code})"
        details = exc.message
    elif isinstance(exc, PreconditionError):
        primary = exc.message
        details = exc.code
    else:
        primary = exc.message.strip() or "Request failed"
        details = exc.code
    if isinstance(exc, ApiError) and exc.details:
        details = f"{details}: {exc.details}"
    return UserFacingError(
        kind=kind,
        message=primary,
        retry_hint=hint,
        details=details,
        trace_id=exc.trace_id,
    )


def format_error(exc: BaseException) -> str:
    presented = to_user_facing_error(exc)
    parts = [presented.message]
    if presented.technical_details:
        parts.append(presented.technical_details)
    if presented.trace_id:
        parts.append(f"trace_id={presented.trace_id}")
    return "\n".join(parts)
