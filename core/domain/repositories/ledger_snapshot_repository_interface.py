from __future__ import annotations

from typing import List, Optional, Protocol

from core.domain.entities.ledger_snapshot_entity import LedgerSnapshotEntity


class LedgerSnapshotRepositoryInterface(Protocol):
    """
    Abstraction for whole-ledger snapshots.
    """

    def ensure_indexes(self) -> None:
        ...

    def insert(self, snapshot: LedgerSnapshotEntity) -> str:
        ...

    def get_latest(self, *, chain: str) -> Optional[LedgerSnapshotEntity]:
        ...

    def get_by_id(self, snapshot_id: str) -> Optional[LedgerSnapshotEntity]:
        ...

    def list_recent(self, *, chain: str, limit: int = 20) -> List[LedgerSnapshotEntity]:
        ...
