from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..envelope import parse_model, parse_model_list, unwrap_ack, unwrap_data
from ..exceptions import ClientValidationError, ConflictError, DuplicateCodeError, error_fields
from ..idempotency import idempotency_headers
from ..models import (
    Sample,
    SampleCreate,
    SampleCreateResult,
    SampleDetail,
    SampleQuery,
    SampleUpdate,
    ServerPrintResult,
)
from .base import BaseClient

SUPPORTED_SORT_FIELDS = frozenset({"updated_at"})


@dataclass
class SamplesClient(BaseClient):
    default_limit: int = 50

    def list_samples(self, query: SampleQuery | None = None) -> list[Sample]:
        params = build_sample_params(query or SampleQuery(), default_limit=self.default_limit)
        data = self._call_data("GET", "/api/samples", params=params, operation="list_samples")
        samples = parse_model_list(Sample, data, self._status(), self._trace_id())
        return self.snapshots.record_many(samples)

    def get_sample(self, sample_id: str) -> SampleDetail:
        data = self._call_data("GET", f"/api/samples/{sample_id}", operation="get_sample")
        detail = parse_model(SampleDetail, data, self._status(), self._trace_id())
        self.snapshots.record(detail)
        return detail

    def update_sample(self, sample_id: str, payload: SampleUpdate | Mapping[str, Any]) -> SampleDetail:
        update = payload if isinstance(payload, SampleUpdate) else SampleUpdate.model_validate(payload)
        code = update.code.strip()
        if not code:
            raise ClientValidationError(code="SAMPLE_CODE_REQUIRED", message="sample_code is required.")
        body = update.model_copy(update={"code": code, "title": _blank_to_none(update.title)})
        data = self._call_data(
            "PATCH",
            f"/api/samples/{sample_id}",
            json_body=body.model_dump(mode="json", by_alias=True),
            operation="update_sample",
            code_conflict=True,
        )
        detail = parse_model(SampleDetail, data, self._status(), self._trace_id())
        self.snapshots.record(detail)
        return detail

    def delete_sample(self, sample_id: str) -> None:
        payload = self._request(
            "DELETE",
            f"/api/samples/{sample_id}",
            module="samples",
            operation="delete_sample",
        )
        if payload is not None:
            unwrap_ack(payload, self._status(), self._trace_id())
        self.snapshots.forget(sample_id)

    def create_sample(
        self,
        payload: SampleCreate | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> SampleCreateResult:
        create = payload if isinstance(payload, SampleCreate) else SampleCreate.model_validate(payload)
        code = create.code.strip()
        if not code:
            raise ClientValidationError(code="SAMPLE_CODE_REQUIRED", message="sample_code is required.")
        body = create.model_copy(
            update={
                "code": code,
                "title": _blank_to_none(create.title),
                "existing_id": _blank_to_none(create.existing_id),
            }
        )
        data = self._call_data(
            "POST",
            "/api/samples",
            json_body=body.model_dump(mode="json", by_alias=True),
            headers=idempotency_headers("create-sample", idempotency_key),
            operation="create_sample",
            code_conflict=True,
        )
        result = parse_model(SampleCreateResult, data, self._status(), self._trace_id())
        self.snapshots.record(result.sample)
        return result

    def print_sample(self, sample_id: str) -> ServerPrintResult:
        """Ask the backend to print the label it keeps for this sample."""
        data = self._call_data("POST", f"/api/samples/{sample_id}/print", operation="print_sample")
        return parse_model(ServerPrintResult, data, self._status(), self._trace_id())

    def _call_data(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        code_conflict: bool = False,
        **kwargs: Any,
    ) -> Any:
        try:
            payload = self._request(method, path, module="samples", operation=operation, **kwargs)
        except ConflictError as exc:
            # the only conflict a create or update can hit is a taken sample_code
            if code_conflict and type(exc) is ConflictError:
                raise DuplicateCodeError(**error_fields(exc)) from exc
            raise
        return unwrap_data(payload, self._status(), self._trace_id())


def build_sample_params(query: SampleQuery, *, default_limit: int | None = None) -> dict[str, Any]:
    if query.sort not in SUPPORTED_SORT_FIELDS:
        raise ClientValidationError(
            code="UNSUPPORTED_SORT",
            message=f"Unsupported sort field: {query.sort}",
            details={"supported": sorted(SUPPORTED_SORT_FIELDS)},
        )
    params: dict[str, Any] = {}
    limit = query.limit if query.limit is not None else default_limit
    if limit is not None:
        params["limit"] = limit
    for key, value in (("id", query.id), ("sample_code", query.code), ("title", query.title)):
        trimmed = (value or "").strip()
        if trimmed:
            params[key] = trimmed
    if query.step is not None:
        params["step"] = query.step.value
    params["sort"] = query.sort
    params["order"] = query.order.value
    return params


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None
