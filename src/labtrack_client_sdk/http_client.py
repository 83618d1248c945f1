from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import ProtocolError, TransportError
from .logging_utils import get_logger, log_operation
from .tracing import TRACE_HEADER, TraceContext

SAFE_METHODS = frozenset({"GET", "HEAD"})

logger = get_logger("http")


@dataclass
class CallRecord:
    """Outcome of the most recent call, used for status lookups and diagnostics."""

    module: str
    operation: str
    elapsed_ms: int
    outcome: str
    trace_id: str | None
    status_code: int = 0


def pooled_session(pool_size: int) -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    for scheme in ("http://", "https://"):
        session.mount(scheme, adapter)
    return session


@dataclass
class HttpClient:
    """Thin wrapper around a shared ``requests.Session``.

    The session's cookie jar carries the ambient LabTrack credential, so every
    client built on the same ``HttpClient`` shares one login.
    """

    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    last_call: CallRecord | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            self.session = pooled_session(self.config.max_connections)

    def build_url(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def send(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> requests.Response:
        """Send one request and return the raw response; only transport failures raise.

        Safe methods are repeated on transport errors and 5xx answers with
        exponential backoff. Mutations go out once unless ``retry_mutation``.
        """
        if self.session is None or self.trace is None:
            raise RuntimeError("HTTP session not initialized")
        verb = method.upper()
        trace_id = self.trace.rotate()
        outgoing = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: trace_id}
        budget = self.config.retries + 1 if verb in SAFE_METHODS or retry_mutation else 1
        started = time.monotonic()

        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.session.request(
                    method=verb,
                    url=self.build_url(path),
                    headers=outgoing,
                    params=params,
                    json=json_body,
                    data=data,
                    files=files,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= budget:
                    self._remember(module, operation, started, "transport_error", trace_id, 0)
                    log_operation(logger, module, operation, "failed", trace_id, error=type(exc).__name__)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__, "attempts": attempt},
                        trace_id=trace_id,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= budget:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2 ** (attempt - 1)))

        self.trace.update_from_headers(response.headers)
        outcome = "success" if response.ok else "error"
        self._remember(module, operation, started, outcome, self.trace.trace_id, response.status_code)
        return response

    def request(self, method: str, path: str, *, transition: bool = False, **options: Any) -> Any:
        """Send a request and return the decoded JSON body of a 2xx response.

        Non-2xx responses raise ``ApiError`` subclasses when the body is a
        negative envelope and ``HttpError`` otherwise. A 2xx body that is not
        JSON raises ``ProtocolError``. Envelope unwrapping is left to callers.
        """
        response = self.send(method, path, **options)
        trace_id = self.trace.trace_id if self.trace else None
        payload = decode_json(response)
        if response.ok:
            if is_undecodable(payload):
                raise ProtocolError(
                    code="INVALID_JSON",
                    message="Response body is not valid JSON",
                    details={"body": response.text[:200]},
                    trace_id=trace_id,
                    status_code=response.status_code,
                )
            return payload
        error = map_error(
            response.status_code,
            None if is_undecodable(payload) else payload,
            trace_id,
            body_text=response.text,
            transition=transition,
        )
        log_operation(
            logger,
            options.get("module", "unknown"),
            options.get("operation", "unknown"),
            "rejected",
            trace_id,
            status=response.status_code,
            code=error.code,
        )
        raise error

    def _remember(
        self,
        module: str,
        operation: str,
        started: float,
        outcome: str,
        trace_id: str | None,
        status_code: int,
    ) -> None:
        self.last_call = CallRecord(
            module=module,
            operation=operation,
            elapsed_ms=int((time.monotonic() - started) * 1000),
            outcome=outcome,
            trace_id=trace_id,
            status_code=status_code,
        )


_UNDECODABLE = object()


def decode_json(response: requests.Response) -> Any:
    """Decoded body, ``None`` for an empty body, or a sentinel when undecodable."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return _UNDECODABLE


def is_undecodable(payload: Any) -> bool:
    return payload is _UNDECODABLE
