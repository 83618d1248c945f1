from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..envelope import parse_model, unwrap_data, unwrap_transition
from ..exceptions import (
    ApiError,
    MissingStationError,
    StaleVersionError,
    StepBoundaryError,
    VersionConflictError,
)
from ..logging_utils import get_logger, log_operation
from ..models import Sample, Station, TransitionDirection, TransitionRequest, TransitionResult
from .base import BaseClient

logger = get_logger("transitions")


@dataclass
class TransitionsClient(BaseClient):
    """Advance/rollback with optimistic concurrency.

    Each call is a single attempt. The version sent is the one carried by the
    sample snapshot the caller holds; the new version always comes back from
    the server. Rejections are raised, never retried.
    """

    def advance(
        self,
        sample: Sample,
        station: Station | None,
        expected_version: int | None = None,
        note: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> TransitionResult:
        return self._transition(TransitionDirection.ADVANCE, sample, station, expected_version, note, meta)

    def rollback(
        self,
        sample: Sample,
        station: Station | None,
        expected_version: int | None = None,
        note: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> TransitionResult:
        return self._transition(TransitionDirection.ROLLBACK, sample, station, expected_version, note, meta)

    def resync(self, sample_id: str) -> Sample:
        """Refetch a sample after a conflict. Only ever called by the caller."""
        payload = self._request("GET", f"/api/samples/{sample_id}", module="transitions", operation="resync")
        data = unwrap_data(payload, self._status(), self._trace_id())
        return self.snapshots.record(parse_model(Sample, data, self._status(), self._trace_id()))

    def _transition(
        self,
        direction: TransitionDirection,
        sample: Sample,
        station: Station | None,
        expected_version: int | None,
        note: str | None,
        meta: Mapping[str, Any] | None,
    ) -> TransitionResult:
        bound_station = check_transition(direction, sample, station, expected_version)
        request = TransitionRequest(
            station_id=bound_station.id,
            expected_version=sample.version if expected_version is None else expected_version,
            note=_clean_note(note),
            meta=dict(meta or {}),
        )
        context = {"sample_id": sample.id, "expected_version": request.expected_version}
        try:
            payload = self._request(
                "POST",
                f"/api/samples/{sample.id}/{direction.value}",
                json_body=request.model_dump(mode="json", exclude_none=True),
                module="transitions",
                operation=direction.value,
                transition=True,
            )
            envelope = unwrap_transition(payload, self._status(), self._trace_id())
        except VersionConflictError as exc:
            log_operation(logger, "transitions", direction.value, "conflict", exc.trace_id, **context)
            raise
        except ApiError as exc:
            log_operation(logger, "transitions", direction.value, "rejected", exc.trace_id, code=exc.code, **context)
            raise

        updated = parse_model(Sample, envelope.sample, self._status(), self._trace_id())
        self.snapshots.record(updated)
        log_operation(
            logger,
            "transitions",
            direction.value,
            "success",
            self._trace_id(),
            step=updated.current_step.value,
            version=updated.version,
            **context,
        )
        return TransitionResult(
            direction=direction,
            sample=updated,
            previous_step=sample.current_step,
            event=envelope.event,
        )


def check_transition(
    direction: TransitionDirection,
    sample: Sample,
    station: Station | None,
    expected_version: int | None = None,
) -> Station:
    """Client-side preconditions; raising here means no request is sent."""
    if station is None or station.step != sample.current_step:
        raise MissingStationError(
            code="STATION_REQUIRED",
            message=f"No station is set for step {sample.current_step.value}.",
            details={"sample_id": sample.id, "step": sample.current_step.value},
        )
    if direction.target(sample.current_step) is None:
        edge = "last" if direction is TransitionDirection.ADVANCE else "first"
        raise StepBoundaryError(
            code="NO_NEXT_STEP" if direction is TransitionDirection.ADVANCE else "NO_PREVIOUS_STEP",
            message=f"Cannot {direction.value}: {sample.current_step.value} is the {edge} step.",
            details={"sample_id": sample.id, "step": sample.current_step.value},
        )
    if expected_version is not None and expected_version != sample.version:
        raise StaleVersionError(
            code="EXPECTED_VERSION_MISMATCH",
            message="expected_version must be the version of the sample snapshot being acted on.",
            details={"sample_version": sample.version, "expected_version": expected_version},
        )
    return station


def _clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    return note.strip() or None
