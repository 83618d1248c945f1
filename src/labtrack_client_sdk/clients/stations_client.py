from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..envelope import parse_model_list, unwrap_data
from ..models import Station, Step
from .base import BaseClient


@dataclass
class StationsClient(BaseClient):
    def list_stations(self, step: Step | str | None = None) -> list[Station]:
        params = {"step": Step(step).value} if step else None
        payload = self._request("GET", "/api/stations", params=params, module="stations", operation="list_stations")
        data = unwrap_data(payload, self._status(), self._trace_id())
        return parse_model_list(Station, data, self._status(), self._trace_id())

    def directory(self, step: Step | str | None = None) -> "StationDirectory":
        return StationDirectory.from_stations(self.list_stations(step))


@dataclass
class StationDirectory:
    """Which station the operator works at for each step.

    The first station listed for a step is selected unless one is chosen
    explicitly.
    """

    by_step: dict[Step, Station] = field(default_factory=dict)

    @classmethod
    def from_stations(cls, stations: Iterable[Station]) -> "StationDirectory":
        directory = cls()
        for station in stations:
            directory.by_step.setdefault(station.step, station)
        return directory

    def select(self, station: Station) -> None:
        self.by_step[station.step] = station

    def for_step(self, step: Step) -> Station | None:
        return self.by_step.get(step)
