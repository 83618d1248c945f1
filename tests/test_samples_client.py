from __future__ import annotations

import json

import pytest
import responses
from responses import matchers

from conftest import API, sample_row
from labtrack_client_sdk.clients.samples_client import SamplesClient, build_sample_params
from labtrack_client_sdk.clients.session_gateway import SessionGateway
from labtrack_client_sdk.clients.stations_client import StationDirectory, StationsClient
from labtrack_client_sdk.exceptions import ClientValidationError, DuplicateCodeError, ProtocolError
from labtrack_client_sdk.http_client import HttpClient
from labtrack_client_sdk.idempotency import IDEMPOTENCY_HEADER
from labtrack_client_sdk.models import SampleCreate, SampleQuery, SortOrder, Station, Step


@pytest.fixture
def samples(http: HttpClient) -> SamplesClient:
    return SamplesClient(http=http, gateway=SessionGateway(http=http))


def _token() -> None:
    responses.add(responses.POST, f"{API}/api/token", json={"ok": True, "data": {}})


def test_build_sample_params_drops_blank_filters() -> None:
    query = SampleQuery(code="  LAB-7 ", title="   ", step=Step.WEIGH, order=SortOrder.ASC)

    params = build_sample_params(query, default_limit=25)

    assert params == {"limit": 25, "sample_code": "LAB-7", "step": "WEIGH", "sort": "updated_at", "order": "asc"}


def test_build_sample_params_rejects_unknown_sort() -> None:
    with pytest.raises(ClientValidationError) as excinfo:
        build_sample_params(SampleQuery(sort="title"))

    assert excinfo.value.code == "UNSUPPORTED_SORT"


@responses.activate
def test_list_samples_sends_filters_and_records_snapshots(samples: SamplesClient) -> None:
    _token()
    responses.add(
        responses.GET,
        f"{API}/api/samples",
        match=[
            matchers.query_param_matcher(
                {"limit": "10", "step": "PREP", "sort": "updated_at", "order": "desc"}
            )
        ],
        json={"ok": True, "data": [sample_row(), sample_row(id="s-2", sample_code="LAB-0002", version=1)]},
    )

    rows = samples.list_samples(SampleQuery(step=Step.PREP, limit=10))

    assert [row.id for row in rows] == ["s-1", "s-2"]
    assert rows[0].locked is False
    assert samples.snapshots.version_of("s-2") == 1


@responses.activate
def test_list_samples_rejects_malformed_rows(samples: SamplesClient) -> None:
    _token()
    responses.add(responses.GET, f"{API}/api/samples", json={"ok": True, "data": [{"id": "s-1"}]})

    with pytest.raises(ProtocolError):
        samples.list_samples()


@responses.activate
def test_get_sample_detail(samples: SamplesClient) -> None:
    _token()
    row = sample_row(last_rollback_to="PREP", last_rollback_reason="re-weigh", created_by="ana")
    responses.add(responses.GET, f"{API}/api/samples/s-1", json={"ok": True, "data": row})

    detail = samples.get_sample("s-1")

    assert detail.last_rollback_to is Step.PREP
    assert detail.created_by == "ana"
    assert samples.snapshots.get("s-1") == detail


@responses.activate
def test_create_sample_trims_input_and_sends_idempotency_key(samples: SamplesClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples",
        json={"ok": True, "data": {"sample": sample_row(current_step="RECEIVE", version=1), "printed": True}},
    )

    result = samples.create_sample(SampleCreate(code="  LAB-0001 ", title=" ", existing_id=""), idempotency_key="k-1")

    sent = responses.calls[-1].request
    assert json.loads(sent.body) == {"sample_code": "LAB-0001", "title": None, "existing_uuid": None}
    assert sent.headers[IDEMPOTENCY_HEADER] == "k-1"
    assert result.printed is True
    assert result.sample.current_step is Step.RECEIVE


def test_create_sample_requires_code(http: HttpClient) -> None:
    client = SamplesClient(http=http, gateway=SessionGateway(http=http))

    with pytest.raises(ClientValidationError):
        client.create_sample({"sample_code": "   "})


@responses.activate
def test_duplicate_code_is_a_typed_error(samples: SamplesClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples",
        status=409,
        json={"ok": False, "error": {"code": "DUPLICATE_CODE", "message": "LAB-0001 already exists"}},
    )

    with pytest.raises(DuplicateCodeError) as excinfo:
        samples.create_sample({"sample_code": "LAB-0001"})

    assert excinfo.value.status_code == 409
    assert "already exists" in excinfo.value.message


@responses.activate
def test_update_and_delete_sample(samples: SamplesClient) -> None:
    _token()
    responses.add(responses.GET, f"{API}/api/samples/s-1", json={"ok": True, "data": sample_row()})
    responses.add(
        responses.PATCH,
        f"{API}/api/samples/s-1",
        json={"ok": True, "data": sample_row(title="Renamed", version=4)},
    )
    responses.add(responses.DELETE, f"{API}/api/samples/s-1", json={"ok": True})

    samples.get_sample("s-1")
    updated = samples.update_sample("s-1", {"sample_code": "LAB-0001", "title": " Renamed ", "current_step": "PREP"})
    assert updated.version == 4
    assert json.loads(responses.calls[-1].request.body)["title"] == "Renamed"

    samples.delete_sample("s-1")
    assert "s-1" not in samples.snapshots


@responses.activate
def test_print_sample_via_backend(samples: SamplesClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/print",
        json={"ok": True, "data": {"printed": False, "print_error": "printer offline"}},
    )

    result = samples.print_sample("s-1")

    assert result.printed is False
    assert result.print_error == "printer offline"


@responses.activate
def test_station_directory_picks_first_station_per_step(http: HttpClient) -> None:
    responses.add(responses.POST, f"{API}/api/token", json={"ok": True, "data": {}})
    responses.add(
        responses.GET,
        f"{API}/api/stations",
        json={
            "ok": True,
            "data": [
                {"id": "st-1", "step": "PREP", "name": "Prep A"},
                {"id": "st-2", "step": "PREP", "name": "Prep B"},
                {"id": "st-3", "step": "WEIGH", "name": "Scale"},
            ],
        },
    )
    client = StationsClient(http=http, gateway=SessionGateway(http=http))

    directory = client.directory()

    assert directory.for_step(Step.PREP).id == "st-1"
    assert directory.for_step(Step.CERTIFY) is None
    directory.select(Station(id="st-2", step=Step.PREP))
    assert directory.for_step(Step.PREP).id == "st-2"


def test_station_directory_from_empty_list() -> None:
    assert StationDirectory.from_stations([]).for_step(Step.RECEIVE) is None


@responses.activate
def test_plain_conflict_on_update_is_a_duplicate_code(samples: SamplesClient) -> None:
    _token()
    responses.add(
        responses.PATCH,
        f"{API}/api/samples/s-1",
        status=409,
        json={"ok": False, "error": {"code": "CONFLICT", "message": "sample_code taken"}},
    )

    with pytest.raises(DuplicateCodeError) as excinfo:
        samples.update_sample("s-1", {"sample_code": "LAB-0002", "current_step": "PREP"})

    assert excinfo.value.code == "CONFLICT"
