from __future__ import annotations

import secrets
from datetime import datetime, timezone

IDEMPOTENCY_HEADER = "Idempotency-Key"


def new_idempotency_key(operation: str) -> str:
    normalized = operation.strip().lower().replace(" ", "-").replace("_", "-")
    ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    nonce = secrets.token_hex(6)
    return f"labtrack-{normalized}-{ts}-{nonce}"


def idempotency_headers(operation: str, key: str | None = None) -> dict[str, str]:
    return {IDEMPOTENCY_HEADER: key or new_idempotency_key(operation)}
