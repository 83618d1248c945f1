from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from labtrack_client_sdk.config import ClientConfig  # noqa: E402
from labtrack_client_sdk.http_client import HttpClient  # noqa: E402
from labtrack_client_sdk.session import LabTrackSession  # noqa: E402
from labtrack_client_sdk.tracing import TraceContext  # noqa: E402

API = "https://lab.example.com"


def sample_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": "s-1",
        "sample_code": "LAB-0001",
        "title": "Soil core",
        "current_step": "PREP",
        "locked": None,
        "version": 3,
        "updated_at": "2026-10-01T09:00:00Z",
    }
    row.update(overrides)
    return row


def station_row(step: str, station_id: str | None = None) -> dict[str, object]:
    return {"id": station_id or f"st-{step.lower()}", "step": step, "name": f"{step.title()} bench"}


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url=API, retries=0, retry_backoff_seconds=0)


@pytest.fixture
def http(config: ClientConfig) -> HttpClient:
    return HttpClient(config, trace=TraceContext())


@pytest.fixture
def lab_session(config: ClientConfig, http: HttpClient) -> LabTrackSession:
    return LabTrackSession(config=config, http=http)
