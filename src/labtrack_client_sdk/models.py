from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Step(str, Enum):
    RECEIVE = "RECEIVE"
    PREP = "PREP"
    WEIGH = "WEIGH"
    ANALYZE = "ANALYZE"
    REPORT = "REPORT"
    CERTIFY = "CERTIFY"

    @classmethod
    def ordered(cls) -> list["Step"]:
        return list(cls)

    @property
    def position(self) -> int:
        return Step.ordered().index(self)

    def next_step(self) -> "Step | None":
        steps = Step.ordered()
        position = self.position + 1
        return steps[position] if position < len(steps) else None

    def previous_step(self) -> "Step | None":
        position = self.position - 1
        return Step.ordered()[position] if position >= 0 else None


class TransitionDirection(str, Enum):
    ADVANCE = "advance"
    ROLLBACK = "rollback"

    def target(self, step: Step) -> Step | None:
        if self is TransitionDirection.ADVANCE:
            return step.next_step()
        return step.previous_step()


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Sample(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    code: str = Field(validation_alias=AliasChoices("code", "sample_code"))
    title: str | None = None
    current_step: Step
    locked: bool = False
    version: int
    updated_at: datetime | str | None = None

    @field_validator("locked", mode="before")
    @classmethod
    def _null_locked(cls, value: Any) -> Any:
        # never-locked rows come back as null
        return False if value is None else value


class SampleDetail(Sample):
    org_id: str | None = None
    last_rollback_to: Step | None = None
    last_rollback_reason: str | None = None
    last_rollback_at: datetime | str | None = None
    created_by: str | None = None
    created_at: datetime | str | None = None


class Station(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    step: Step
    name: str | None = None
    code: str | None = None


class SampleQuery(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    code: str | None = Field(default=None, alias="sample_code")
    title: str | None = None
    step: Step | None = None
    sort: str = "updated_at"
    order: SortOrder = SortOrder.DESC
    limit: int | None = None


class SampleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(alias="sample_code")
    title: str | None = None
    existing_id: str | None = Field(default=None, alias="existing_uuid")


class SampleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(alias="sample_code")
    title: str | None = None
    current_step: Step


class SampleCreateResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sample: Sample
    printed: bool = False
    print_error: str | None = None


class ServerPrintResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    printed: bool = False
    print_error: str | None = None


class TransitionRequest(BaseModel):
    station_id: str
    expected_version: int
    note: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class TransitionResult(BaseModel):
    direction: TransitionDirection
    sample: Sample
    previous_step: Step
    event: Any = None


class PrintJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    sample_id: str
    title: str
    qr_payload: str | None = None
    copies: int | None = Field(default=1, ge=1)

    @property
    def payload_text(self) -> str:
        return self.qr_payload if self.qr_payload else self.sample_id


class PrintResult(BaseModel):
    delivered: bool
    detail: str = ""
    status_code: int | None = None
    stage: str = "delivered"
    trace_id: str | None = None


class ProbeResult(BaseModel):
    reachable: bool
    status_code: int | None = None
    detail: str = ""
