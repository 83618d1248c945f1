from __future__ import annotations

from dataclasses import dataclass, field

from .models import Sample, SampleQuery


@dataclass(frozen=True)
class ListingTicket:
    sequence: int
    query: SampleQuery


@dataclass
class ListingState:
    """Keeps a listing view consistent when fetches overlap.

    In-flight fetches are never cancelled. Each response is keyed to the query
    that produced it and is dropped if the view has moved on in the meantime.
    """

    query: SampleQuery = field(default_factory=SampleQuery)
    rows: list[Sample] = field(default_factory=list)
    loading: bool = False
    _issued: int = 0
    _applied: int = 0

    def set_filters(self, query: SampleQuery) -> None:
        self.query = query

    def begin(self, query: SampleQuery | None = None) -> ListingTicket:
        if query is not None:
            self.query = query
        self._issued += 1
        self.loading = True
        return ListingTicket(sequence=self._issued, query=self.query)

    def is_current(self, ticket: ListingTicket) -> bool:
        return ticket.sequence == self._issued and ticket.query == self.query

    def accept(self, ticket: ListingTicket, rows: list[Sample]) -> bool:
        if not self.is_current(ticket) or ticket.sequence <= self._applied:
            return False
        self.rows = list(rows)
        self._applied = ticket.sequence
        self.loading = False
        return True

    def fail(self, ticket: ListingTicket) -> bool:
        if not self.is_current(ticket):
            return False
        self.rows = []
        self.loading = False
        return True
