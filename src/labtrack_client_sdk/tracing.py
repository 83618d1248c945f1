from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping

TRACE_HEADER = "X-Request-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Request-Id", "x-request-id", "CF-Ray")


def new_trace_id() -> str:
    return str(uuid.uuid4())


@dataclass
class TraceContext:
    """Request id sent with every call and echoed back into typed errors."""

    trace_id: str | None = None

    def rotate(self) -> str:
        self.trace_id = new_trace_id()
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        for key in TRACE_HEADER_ALIASES:
            trace_id = headers.get(key)
            if trace_id:
                self.trace_id = trace_id
                return
