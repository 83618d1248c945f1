from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable

from ..exceptions import AuthFailure, QrRenderError, TransportError
from ..http_client import HttpClient, decode_json, is_undecodable
from ..idempotency import idempotency_headers
from ..logging_utils import get_logger, log_operation
from ..models import PrintJob, PrintResult, ProbeResult
from ..qr import DEFAULT_QR_MARGIN, DEFAULT_QR_SIZE, PNG_CONTENT_TYPE, render_qr_png
from .session_gateway import SessionGateway

Rasterizer = Callable[[str, int, int], bytes]

PRINT_PATH = "/api/print-gateway/print"
HEALTH_PATH = "/api/print-gateway/health"
_DETAIL_LIMIT = 300

logger = get_logger("print_gateway")


@dataclass
class PrintGatewayForwarder:
    """Relays label print jobs to the print service through the LabTrack backend.

    The backend holds the gateway address and its access credentials, so the
    client only ever talks to its own origin. ``forward`` reports failures in
    its result instead of raising: a print is a side channel and must never
    undo or block the sample operation that triggered it.
    """

    http: HttpClient
    gateway: SessionGateway
    qr_size: int = DEFAULT_QR_SIZE
    qr_margin: int = DEFAULT_QR_MARGIN
    rasterizer: Rasterizer = field(default=render_qr_png)
    print_path: str = PRINT_PATH
    health_path: str = HEALTH_PATH

    def probe(self) -> ProbeResult:
        """Diagnostics only; the result never gates ``forward``."""
        try:
            response = self.http.send("GET", self.health_path, module="print_gateway", operation="probe")
        except TransportError as exc:
            log_operation(logger, "print_gateway", "probe", "failed", exc.trace_id, kind="transport")
            return ProbeResult(reachable=False, status_code=None, detail=exc.message)
        detail = _excerpt(response.text)
        log_operation(
            logger,
            "print_gateway",
            "probe",
            "success" if response.ok else "failed",
            self._trace_id(),
            status=response.status_code,
        )
        return ProbeResult(reachable=response.ok, status_code=response.status_code, detail=detail)

    def forward(self, job: PrintJob, idempotency_key: str | None = None) -> PrintResult:
        try:
            image = self.rasterizer(job.payload_text, self.qr_size, self.qr_margin)
        except QrRenderError as exc:
            return self._failed("render", f"QR rendering failed: {exc.message}", None, exc.trace_id, job)
        if not image:
            return self._failed("render", "QR rendering produced no image", None, None, job)

        try:
            self.gateway.ensure_session()
        except AuthFailure as exc:
            return self._failed("session", f"Session unavailable: {exc.message}", exc.status_code or None, exc.trace_id, job)

        form = {"title20": job.title, "qr30": job.payload_text}
        if job.copies is not None:
            form["copies"] = str(job.copies)
        files = {"qr10": ("qr.png", image, PNG_CONTENT_TYPE)}
        try:
            response = self.http.send(
                "POST",
                self.print_path,
                headers=idempotency_headers("print-label", idempotency_key),
                data=form,
                files=files,
                module="print_gateway",
                operation="forward",
            )
        except TransportError as exc:
            return self._failed("transport", f"Print gateway unreachable: {exc.message}", None, exc.trace_id, job)

        trace_id = self._trace_id()
        payload = decode_json(response)
        decoded = None if is_undecodable(payload) else payload
        if not response.ok:
            detail = f"HTTP {response.status_code}"
            excerpt = _envelope_message(decoded) or _excerpt(response.text)
            if excerpt:
                detail = f"{detail}: {excerpt}"
            if response.status_code == 401:
                self.gateway.invalidate()
            return self._failed("gateway", detail, response.status_code, trace_id, job)
        if not isinstance(decoded, Mapping) or decoded.get("ok") is not True:
            detail = _envelope_message(decoded) or f"Unexpected print response: {_excerpt(response.text)}"
            return self._failed("gateway", detail, response.status_code, trace_id, job)

        log_operation(logger, "print_gateway", "forward", "success", trace_id, sample_id=job.sample_id, copies=job.copies)
        return PrintResult(
            delivered=True,
            detail=_excerpt(response.text),
            status_code=response.status_code,
            stage="delivered",
            trace_id=trace_id,
        )

    def _failed(
        self,
        stage: str,
        detail: str,
        status_code: int | None,
        trace_id: str | None,
        job: PrintJob,
    ) -> PrintResult:
        log_operation(logger, "print_gateway", "forward", "failed", trace_id, stage=stage, sample_id=job.sample_id)
        return PrintResult(delivered=False, detail=detail, status_code=status_code, stage=stage, trace_id=trace_id)

    def _trace_id(self) -> str | None:
        return self.http.trace.trace_id if self.http.trace else None


def _envelope_message(payload: object) -> str | None:
    if not isinstance(payload, Mapping):
        return None
    error = payload.get("error")
    if isinstance(error, Mapping):
        code = error.get("code")
        message = error.get("message")
        if code and message:
            return f"{code}: {message}"
        return str(message or code or "") or None
    if isinstance(error, str) and error:
        return error
    return None


def _excerpt(text: str) -> str:
    return (text or "").strip()[:_DETAIL_LIMIT]
