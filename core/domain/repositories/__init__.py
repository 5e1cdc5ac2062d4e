from .ledger_events_repository_interface import LedgerEventsRepositoryInterface
from .ledger_snapshot_repository_interface import LedgerSnapshotRepositoryInterface
from .wrapper_factory_repository_interface import WrapperFactoryRepository

__all__ = [
    "LedgerEventsRepositoryInterface",
    "LedgerSnapshotRepositoryInterface",
    "WrapperFactoryRepository",
]
