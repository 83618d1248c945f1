from __future__ import annotations

import json
import logging

import pytest
import responses

from conftest import API, sample_row
from labtrack_client_sdk.clients.session_gateway import SessionGateway
from labtrack_client_sdk.clients.transitions_client import TransitionsClient, check_transition
from labtrack_client_sdk.exceptions import (
    MissingStationError,
    SampleLockedError,
    StaleVersionError,
    StepBoundaryError,
    VersionConflictError,
)
from labtrack_client_sdk.http_client import HttpClient
from labtrack_client_sdk.models import Sample, Station, Step, TransitionDirection
from labtrack_client_sdk.snapshots import SampleSnapshots

CONFLICT = {"ok": False, "error": {"code": "VERSION_CONFLICT", "message": "expected 3, found 4"}}


def _sample(**overrides: object) -> Sample:
    return Sample.model_validate(sample_row(**overrides))


def _station(step: Step) -> Station:
    return Station(id=f"st-{step.value.lower()}", step=step, name=step.value)


def _token() -> None:
    responses.add(responses.POST, f"{API}/api/token", json={"ok": True, "data": {}})


@pytest.fixture
def transitions(http: HttpClient) -> TransitionsClient:
    return TransitionsClient(http=http, gateway=SessionGateway(http=http), snapshots=SampleSnapshots())


@responses.activate
def test_advance_sends_snapshot_version_and_records_server_result(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/advance",
        json={"ok": True, "sample": sample_row(current_step="WEIGH", version=4), "event": {"id": "ev-1"}},
    )
    sample = _sample()

    result = transitions.advance(sample, _station(Step.PREP), note="  weighed twice ")

    body = json.loads(responses.calls[-1].request.body)
    assert body == {"station_id": "st-prep", "expected_version": 3, "note": "weighed twice", "meta": {}}
    assert result.sample.current_step is Step.WEIGH
    assert result.sample.version == 4
    assert result.previous_step is Step.PREP
    assert result.event == {"id": "ev-1"}
    assert transitions.snapshots.version_of("s-1") == 4


@responses.activate
def test_replayed_version_is_rejected_and_snapshot_kept(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/advance",
        json={"ok": True, "sample": sample_row(current_step="WEIGH", version=4)},
    )
    responses.add(responses.POST, f"{API}/api/samples/s-1/advance", status=409, json=CONFLICT)
    stale = _sample()

    transitions.advance(stale, _station(Step.PREP))
    with pytest.raises(VersionConflictError) as excinfo:
        transitions.advance(stale, _station(Step.PREP))

    assert excinfo.value.status_code == 409
    assert excinfo.value.message == "expected 3, found 4"
    assert json.loads(responses.calls[-1].request.body)["expected_version"] == 3
    snapshot = transitions.snapshots.get("s-1")
    assert snapshot.version == 4
    assert snapshot.current_step is Step.WEIGH


@responses.activate
def test_conflict_without_known_code_is_still_a_version_conflict(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/rollback",
        status=409,
        json={"ok": False, "error": {"code": "CONFLICT", "message": "changed"}},
    )

    with pytest.raises(VersionConflictError):
        transitions.rollback(_sample(), _station(Step.PREP))


@responses.activate
def test_advance_then_rollback_moves_version_forward_twice(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/advance",
        json={"ok": True, "sample": sample_row(current_step="WEIGH", version=4)},
    )
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/rollback",
        json={"ok": True, "sample": sample_row(current_step="PREP", version=5)},
    )

    advanced = transitions.advance(_sample(), _station(Step.PREP)).sample
    rolled_back = transitions.rollback(advanced, _station(Step.WEIGH), note="scale drift").sample

    assert rolled_back.current_step is Step.PREP
    assert rolled_back.version == 5
    assert json.loads(responses.calls[-1].request.body)["expected_version"] == 4


@pytest.mark.parametrize(
    ("direction", "step", "code"),
    [
        (TransitionDirection.ADVANCE, Step.CERTIFY, "NO_NEXT_STEP"),
        (TransitionDirection.ROLLBACK, Step.RECEIVE, "NO_PREVIOUS_STEP"),
    ],
)
@responses.activate
def test_step_boundaries_send_nothing(
    transitions: TransitionsClient,
    direction: TransitionDirection,
    step: Step,
    code: str,
) -> None:
    sample = _sample(current_step=step.value)
    action = transitions.advance if direction is TransitionDirection.ADVANCE else transitions.rollback

    with pytest.raises(StepBoundaryError) as excinfo:
        action(sample, _station(step))

    assert excinfo.value.code == code
    assert len(responses.calls) == 0


@responses.activate
def test_missing_or_mismatched_station_sends_nothing(transitions: TransitionsClient) -> None:
    sample = _sample()

    with pytest.raises(MissingStationError):
        transitions.advance(sample, None)
    with pytest.raises(MissingStationError):
        transitions.advance(sample, _station(Step.WEIGH))

    assert len(responses.calls) == 0


@responses.activate
def test_explicit_version_must_match_the_snapshot(transitions: TransitionsClient) -> None:
    with pytest.raises(StaleVersionError):
        transitions.advance(_sample(), _station(Step.PREP), expected_version=2)

    assert len(responses.calls) == 0


@responses.activate
def test_racing_clients_one_wins_one_conflicts(http: HttpClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/advance",
        json={"ok": True, "sample": sample_row(current_step="WEIGH", version=4)},
    )
    responses.add(responses.POST, f"{API}/api/samples/s-1/advance", status=409, json=CONFLICT)
    first = TransitionsClient(http=http, gateway=SessionGateway(http=http), snapshots=SampleSnapshots())
    second = TransitionsClient(http=http, gateway=SessionGateway(http=http), snapshots=SampleSnapshots())
    seen_by_both = _sample()

    outcomes = []
    for client in (first, second):
        try:
            outcomes.append(client.advance(seen_by_both, _station(Step.PREP)).sample.version)
        except VersionConflictError:
            outcomes.append("conflict")

    assert outcomes == [4, "conflict"]
    assert second.snapshots.get("s-1") is None


@responses.activate
def test_locked_sample_is_typed(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.POST,
        f"{API}/api/samples/s-1/advance",
        status=423,
        json={"ok": False, "error": {"code": "SAMPLE_LOCKED", "message": "certified samples are locked"}},
    )

    with pytest.raises(SampleLockedError):
        transitions.advance(_sample(locked=True), _station(Step.PREP))


@responses.activate
def test_resync_refreshes_the_snapshot(transitions: TransitionsClient) -> None:
    _token()
    responses.add(
        responses.GET,
        f"{API}/api/samples/s-1",
        json={"ok": True, "data": sample_row(current_step="WEIGH", version=4)},
    )

    fresh = transitions.resync("s-1")

    assert fresh.version == 4
    assert transitions.snapshots.get("s-1") == fresh


@responses.activate
def test_conflicts_are_logged(transitions: TransitionsClient, caplog: pytest.LogCaptureFixture) -> None:
    _token()
    responses.add(responses.POST, f"{API}/api/samples/s-1/advance", status=409, json=CONFLICT)

    with caplog.at_level(logging.INFO, logger="labtrack_client_sdk"):
        with pytest.raises(VersionConflictError):
            transitions.advance(_sample(), _station(Step.PREP))

    outcomes = [
        json.loads(record.getMessage())["outcome"]
        for record in caplog.records
        if record.name == "labtrack_client_sdk.transitions"
    ]
    assert outcomes == ["conflict"]


def test_check_transition_returns_bound_station() -> None:
    station = _station(Step.PREP)

    assert check_transition(TransitionDirection.ADVANCE, _sample(), station) is station
