from __future__ import annotations

from typing import Any, Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    DuplicateCodeError,
    HttpError,
    NotFoundError,
    SampleLockedError,
    ServerError,
    ValidationError,
    VersionConflictError,
)

_CODE_CLASSES: dict[str, type[ApiError]] = {
    "VERSION_CONFLICT": VersionConflictError,
    "STALE_VERSION": VersionConflictError,
    "DUPLICATE_CODE": DuplicateCodeError,
    "DUPLICATE_SAMPLE_CODE": DuplicateCodeError,
    "SAMPLE_CODE_EXISTS": DuplicateCodeError,
    "SAMPLE_LOCKED": SampleLockedError,
    "LOCKED": SampleLockedError,
    "NOT_FOUND": NotFoundError,
    "SAMPLE_NOT_FOUND": NotFoundError,
    "VALIDATION_ERROR": ValidationError,
    "UNAUTHORIZED": AuthError,
    "FORBIDDEN": AuthError,
}

_BODY_EXCERPT_LIMIT = 200


def negative_envelope_error(payload: object) -> Mapping[str, Any] | None:
    """Return the ``error`` object when ``payload`` is ``{ok: false, error: {...}}``."""
    if not isinstance(payload, Mapping) or payload.get("ok") is not False:
        return None
    error = payload.get("error")
    if not isinstance(error, Mapping):
        return None
    return error


def _class_for(status_code: int, code: str, *, transition: bool) -> type[ApiError]:
    mapped = _CODE_CLASSES.get(code.upper())
    if mapped is not None:
        return mapped
    if status_code in {401, 403}:
        return AuthError
    if status_code == 404:
        return NotFoundError
    if status_code in {400, 422}:
        return ValidationError
    if status_code == 409:
        return VersionConflictError if transition else ConflictError
    if status_code >= 500:
        return ServerError
    return ApiError


def map_api_error(
    status_code: int,
    error: Mapping[str, Any],
    trace_id: str | None,
    raw_payload: object | None = None,
    *,
    transition: bool = False,
) -> ApiError:
    code = str(error.get("code") or "API_ERROR")
    message = str(error.get("message") or "Request rejected")
    mapped = _class_for(status_code, code, transition=transition)
    return mapped(
        code=code,
        message=message,
        details=error.get("details"),
        trace_id=trace_id,
        status_code=status_code,
        raw_payload=raw_payload,
    )


def map_error(
    status_code: int,
    payload: object | None,
    trace_id: str | None,
    *,
    body_text: str = "",
    transition: bool = False,
) -> ApiError | HttpError:
    error = negative_envelope_error(payload)
    if error is not None:
        return map_api_error(status_code, error, trace_id, payload, transition=transition)
    excerpt = body_text.strip()[:_BODY_EXCERPT_LIMIT]
    return HttpError(
        code=f"HTTP_{status_code}",
        message=excerpt or "Request failed",
        details=None,
        trace_id=trace_id,
        status_code=status_code,
        raw_payload=payload,
    )
