from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, TypeVar

from ..error_mapper import map_api_error, map_error, negative_envelope_error
from ..exceptions import (
    ApiError,
    LabTrackError,
    SessionApiError,
    SessionHttpError,
    SessionProtocolError,
    SessionTransportError,
    TransportError,
    error_fields,
    is_authorization_failure,
)
from ..http_client import HttpClient, decode_json, is_undecodable
from ..logging_utils import get_logger, log_operation

T = TypeVar("T")

logger = get_logger("session")


@dataclass
class SessionGateway:
    """Makes sure a server session exists before any protected call.

    The token itself lives in the shared cookie jar; the gateway only tracks
    whether it is believed to be present.
    """

    http: HttpClient
    token_path: str = "/api/token"
    logout_path: str = "/api/logout"
    token_present: bool = False
    bootstrap_count: int = 0

    def ensure_session(self) -> None:
        self.bootstrap_count += 1
        try:
            response = self.http.send("POST", self.token_path, module="session", operation="ensure_session")
        except TransportError as exc:
            self.token_present = False
            log_operation(logger, "session", "ensure_session", "failed", exc.trace_id, kind="transport")
            raise SessionTransportError(**error_fields(exc)) from exc

        trace_id = self.http.trace.trace_id if self.http.trace else None
        payload = decode_json(response)
        decoded = None if is_undecodable(payload) else payload
        if not response.ok:
            self.token_present = False
            error = map_error(response.status_code, decoded, trace_id, body_text=response.text)
            session_error = SessionApiError if isinstance(error, ApiError) else SessionHttpError
            log_operation(logger, "session", "ensure_session", "failed", trace_id, status=response.status_code)
            raise session_error(**error_fields(error))

        if not isinstance(decoded, Mapping) or not isinstance(decoded.get("ok"), bool):
            self.token_present = False
            log_operation(logger, "session", "ensure_session", "failed", trace_id, kind="protocol")
            raise SessionProtocolError(
                code="UNEXPECTED_TOKEN_RESPONSE",
                message="Unexpected token response",
                details=None,
                trace_id=trace_id,
                status_code=response.status_code,
                raw_payload=decoded,
            )
        if decoded["ok"] is False:
            self.token_present = False
            envelope_error = negative_envelope_error(decoded)
            if envelope_error is None:
                raise SessionProtocolError(
                    code="UNEXPECTED_TOKEN_RESPONSE",
                    message="Negative token response without error object",
                    details=None,
                    trace_id=trace_id,
                    status_code=response.status_code,
                    raw_payload=decoded,
                )
            error = map_api_error(response.status_code, envelope_error, trace_id, decoded)
            log_operation(logger, "session", "ensure_session", "rejected", trace_id, code=error.code)
            raise SessionApiError(**error_fields(error))

        self.token_present = True

    def call(self, operation: Callable[[], T], *, retry_on_unauthorized: bool = True) -> T:
        """Run ``operation`` after a completed bootstrap.

        A 401 from the protected call marks the token absent; the bootstrap
        and the call are then repeated exactly once. If the bootstrap fails the
        call is never issued.
        """
        self.ensure_session()
        try:
            return operation()
        except LabTrackError as exc:
            if not (retry_on_unauthorized and is_authorization_failure(exc)):
                raise
            self.token_present = False
            log_operation(logger, "session", "reauthenticate", "retrying", exc.trace_id)
        self.ensure_session()
        return operation()

    def invalidate(self) -> None:
        self.token_present = False

    def logout(self) -> bool:
        """Best effort; local state is cleared whatever the server says."""
        try:
            response = self.http.send("POST", self.logout_path, module="session", operation="logout")
        except TransportError as exc:
            log_operation(logger, "session", "logout", "failed", exc.trace_id, kind="transport")
            return False
        finally:
            self.token_present = False
        if not response.ok:
            log_operation(logger, "session", "logout", "failed", None, status=response.status_code)
        return response.ok
