from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from core.domain.entities.ledger_event_entity import LedgerEventEntity


class LedgerEventsRepositoryInterface(Protocol):
    """
    Abstraction for the committed event log history.
    """

    def ensure_indexes(self) -> None:
        ...

    def append_events(self, events: Sequence[LedgerEventEntity]) -> int:
        ...

    def get_events(
        self,
        *,
        chain: str,
        address: Optional[str] = None,
        event: Optional[str] = None,
        limit: int = 500,
    ) -> List[LedgerEventEntity]:
        ...
