from __future__ import annotations

from ..exceptions import LabTrackError
from ..listing import ListingState
from ..models import SampleQuery
from ..session import LabTrackSession
from ..ui_errors import UserFacingError, to_user_facing_error


class SampleListService:
    def __init__(self, session: LabTrackSession, state: ListingState | None = None) -> None:
        self.session = session
        self.state = state if state is not None else ListingState()
        self.last_error: UserFacingError | None = None

    def refresh(self, query: SampleQuery | None = None) -> bool:
        """Fetch rows for ``query`` (or the current filters); False if the result was discarded."""
        ticket = self.state.begin(query)
        try:
            rows = self.session.samples_client().list_samples(ticket.query)
        except LabTrackError as exc:
            if self.state.fail(ticket):
                self.last_error = to_user_facing_error(exc)
            return False
        accepted = self.state.accept(ticket, rows)
        if accepted:
            self.last_error = None
        return accepted
