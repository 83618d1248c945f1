from .listing_service import SampleListService
from .reception_service import ReceptionService, RegistrationOutcome
from .step_service import ActionOutcome, StepService

__all__ = [
    "ActionOutcome",
    "ReceptionService",
    "RegistrationOutcome",
    "SampleListService",
    "StepService",
]
