from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..clients.stations_client import StationDirectory
from ..exceptions import ActionInFlightError, LabTrackError
from ..models import PrintJob, PrintResult, Sample, TransitionDirection
from ..session import LabTrackSession
from ..ui_errors import UserFacingError, to_user_facing_error


@dataclass(frozen=True)
class ActionOutcome:
    ok: bool
    sample: Sample
    message: str
    error: UserFacingError | None = None
    print_result: PrintResult | None = None


class StepService:
    """Operator-facing advance/rollback.

    Acts on the most recent snapshot of each sample, resolves the station for
    the sample's current step and refuses a second submit for a sample whose
    previous action has not finished.
    """

    def __init__(self, session: LabTrackSession, stations: StationDirectory) -> None:
        self.session = session
        self.stations = stations
        self._in_flight: set[str] = set()

    def advance(
        self,
        sample: Sample,
        note: str | None = None,
        meta: Mapping[str, Any] | None = None,
        *,
        print_label: bool = False,
    ) -> ActionOutcome:
        return self._run(TransitionDirection.ADVANCE, sample, note, meta, print_label)

    def rollback(
        self,
        sample: Sample,
        note: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> ActionOutcome:
        return self._run(TransitionDirection.ROLLBACK, sample, note, meta, False)

    def is_busy(self, sample_id: str) -> bool:
        return sample_id in self._in_flight

    def _run(
        self,
        direction: TransitionDirection,
        sample: Sample,
        note: str | None,
        meta: Mapping[str, Any] | None,
        print_label: bool,
    ) -> ActionOutcome:
        current = self.session.snapshots.get(sample.id) or sample
        if current.id in self._in_flight:
            error = ActionInFlightError(
                code="ACTION_IN_FLIGHT",
                message=f"An action for {current.code} is already running.",
            )
            return ActionOutcome(ok=False, sample=current, message=error.message, error=to_user_facing_error(error))

        self._in_flight.add(current.id)
        try:
            client = self.session.transitions_client()
            station = self.stations.for_step(current.current_step)
            if direction is TransitionDirection.ADVANCE:
                result = client.advance(current, station, note=note, meta=meta)
            else:
                result = client.rollback(current, station, note=note, meta=meta)
        except LabTrackError as exc:
            presented = to_user_facing_error(exc)
            return ActionOutcome(ok=False, sample=current, message=presented.message, error=presented)
        finally:
            self._in_flight.discard(current.id)

        updated = result.sample
        message = (
            f"{direction.value.capitalize()} OK: {updated.code} -> {updated.current_step.value} (v{updated.version})"
        )
        print_result = None
        if print_label:
            job = PrintJob(sample_id=updated.id, title=updated.code, qr_payload=updated.id)
            print_result = self.session.print_gateway().forward(job)
        return ActionOutcome(ok=True, sample=updated, message=message, print_result=print_result)
