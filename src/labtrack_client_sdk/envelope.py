"""Envelope parsing for LabTrack responses.

Read/write endpoints answer ``{ok: true, data: ...}``. Transition endpoints
answer ``{ok: true, sample: ..., event?: ...}``. Both use
``{ok: false, error: {code, message, details?}}`` for rejections.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .error_mapper import map_api_error, negative_envelope_error
from .exceptions import ProtocolError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class TransitionEnvelope:
    sample: Mapping[str, Any]
    event: Any = None


def _protocol_error(message: str, status_code: int, payload: object, trace_id: str | None) -> ProtocolError:
    return ProtocolError(
        code="UNEXPECTED_RESPONSE",
        message=message,
        details=None,
        trace_id=trace_id,
        status_code=status_code,
        raw_payload=payload,
    )


def unwrap_data(payload: object, status_code: int, trace_id: str | None = None) -> Any:
    if not isinstance(payload, Mapping) or not isinstance(payload.get("ok"), bool):
        raise _protocol_error("Unexpected API response", status_code, payload, trace_id)
    error = negative_envelope_error(payload)
    if error is not None:
        raise map_api_error(status_code, error, trace_id, payload)
    if payload["ok"] is False:
        raise _protocol_error("Negative envelope without error object", status_code, payload, trace_id)
    if "data" not in payload:
        raise _protocol_error("Envelope is missing data", status_code, payload, trace_id)
    return payload["data"]


def unwrap_ack(payload: object, status_code: int, trace_id: str | None = None) -> Mapping[str, Any]:
    """Accept ``{ok: true, ...}`` without requiring a ``data`` member."""
    if not isinstance(payload, Mapping) or not isinstance(payload.get("ok"), bool):
        raise _protocol_error("Unexpected API response", status_code, payload, trace_id)
    error = negative_envelope_error(payload)
    if error is not None:
        raise map_api_error(status_code, error, trace_id, payload)
    if payload["ok"] is False:
        raise _protocol_error("Negative envelope without error object", status_code, payload, trace_id)
    return payload


def unwrap_transition(payload: object, status_code: int, trace_id: str | None = None) -> TransitionEnvelope:
    ack = unwrap_ack(payload, status_code, trace_id)
    # older backends reused the generic envelope for transitions
    sample = ack.get("sample", ack.get("data"))
    if not isinstance(sample, Mapping):
        raise _protocol_error("Transition response is missing the sample", status_code, payload, trace_id)
    return TransitionEnvelope(sample=sample, event=ack.get("event"))


def parse_model(model: type[ModelT], data: object, status_code: int, trace_id: str | None = None) -> ModelT:
    if not isinstance(data, Mapping):
        raise _protocol_error(f"Expected {model.__name__} object", status_code, data, trace_id)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ProtocolError(
            code="UNEXPECTED_RESPONSE",
            message=f"Invalid {model.__name__} in response",
            details={"errors": exc.errors(include_url=False)},
            trace_id=trace_id,
            status_code=status_code,
            raw_payload=data,
        ) from exc


def parse_model_list(model: type[ModelT], data: object, status_code: int, trace_id: str | None = None) -> list[ModelT]:
    if not isinstance(data, list):
        raise _protocol_error(f"Expected a list of {model.__name__}", status_code, data, trace_id)
    return [parse_model(model, row, status_code, trace_id) for row in data]
