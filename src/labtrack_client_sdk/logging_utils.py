from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

LOGGER_NAMESPACE = "labtrack_client_sdk"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
    root = logging.getLogger(LOGGER_NAMESPACE)
    if root.handlers:
        return logger
    root.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    return logger


def log_operation(
    logger: logging.Logger,
    module: str,
    action: str,
    outcome: str,
    trace_id: str | None = None,
    *,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": logging.getLevelName(level),
        "module": module,
        "action": action,
        "trace_id": trace_id,
        "outcome": outcome,
    }
    if context:
        record["context"] = context
    logger.log(level, json.dumps(record, default=str, sort_keys=True))
