from __future__ import annotations

from dataclasses import dataclass

from ..logging_utils import get_logger, log_operation
from ..models import PrintJob, PrintResult, Sample, SampleCreate
from ..session import LabTrackSession

logger = get_logger("reception")


@dataclass(frozen=True)
class RegistrationOutcome:
    sample: Sample
    printed: bool
    print_error: str | None = None
    label_skipped: bool = False

    @property
    def can_reprint(self) -> bool:
        return not self.printed

    @property
    def message(self) -> str:
        if self.label_skipped:
            return f"Registered {self.sample.code} (existing label, nothing printed)."
        if self.printed:
            return f"Registered {self.sample.code} and printed its label."
        return f"Registered {self.sample.code}. Label printing failed: {self.print_error or 'unknown error'}"


class ReceptionService:
    """Registers samples at reception and prints their QR labels.

    Registration is committed before any print is attempted. A failed print is
    reported in the outcome and can be repeated with ``reprint``.
    """

    def __init__(self, session: LabTrackSession, *, copies: int = 1) -> None:
        self.session = session
        self.copies = copies

    def register(
        self,
        code: str,
        title: str | None = None,
        existing_id: str | None = None,
        *,
        idempotency_key: str | None = None,
    ) -> RegistrationOutcome:
        request = SampleCreate(code=code, title=title, existing_id=existing_id)
        created = self.session.samples_client().create_sample(request, idempotency_key=idempotency_key)
        sample = created.sample

        if (existing_id or "").strip():
            log_operation(logger, "reception", "print_label", "skipped", None, sample_id=sample.id, reason="existing_label")
            return RegistrationOutcome(sample=sample, printed=False, label_skipped=True)
        if created.printed:
            return RegistrationOutcome(sample=sample, printed=True)
        if created.print_error:
            # the backend already attempted the print; retrying is left to the operator
            return RegistrationOutcome(sample=sample, printed=False, print_error=created.print_error)

        result = self.reprint(sample)
        return RegistrationOutcome(
            sample=sample,
            printed=result.delivered,
            print_error=None if result.delivered else result.detail,
        )

    def reprint(self, sample: Sample, title: str | None = None) -> PrintResult:
        return self.session.print_gateway().forward(self.label_job(sample, title))

    def label_job(self, sample: Sample, title: str | None = None) -> PrintJob:
        return PrintJob(
            sample_id=sample.id,
            title=(title or sample.code).strip(),
            qr_payload=sample.id,
            copies=self.copies,
        )
