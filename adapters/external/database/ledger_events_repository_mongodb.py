# adapters/external/database/ledger_events_repository_mongodb.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pymongo.collection import Collection
from pymongo.database import Database

from adapters.external.database.helper_repo import sanitize_for_mongo
from adapters.external.database.mongo_client import get_mongo_db
from core.domain.entities.ledger_event_entity import LedgerEventEntity
from core.domain.repositories.ledger_events_repository_interface import LedgerEventsRepositoryInterface
from core.services.normalize import _norm_lower, to_address


class LedgerEventsRepositoryMongoDB(LedgerEventsRepositoryInterface):
    """
    Repository storing every committed event log.

    Each log is one document in the 'ledger_events' collection, mapped to a
    `LedgerEventEntity`. (chain, tx_hash, log_index) identifies a log.
    """

    COLLECTION_NAME = "ledger_events"

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db: Database = db if db is not None else get_mongo_db()
        self._collection: Collection = self._db[self.COLLECTION_NAME]

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        self._collection.create_index(
            [("chain", 1), ("tx_hash", 1), ("log_index", 1)],
            unique=True,
            name="ux_ledger_events_chain_tx_log",
        )
        self._collection.create_index(
            [("chain", 1), ("address", 1), ("event", 1), ("block_number", -1)],
            name="ix_ledger_events_chain_address_event_block_desc",
        )

    def append_events(self, events: Sequence[LedgerEventEntity]) -> int:
        docs = []
        for ev in events:
            doc = sanitize_for_mongo(ev.touch_for_insert().to_mongo())
            doc["chain"] = _norm_lower(doc.get("chain"))
            docs.append(doc)
        if not docs:
            return 0
        res = self._collection.insert_many(docs)
        return len(res.inserted_ids)

    def get_events(
        self,
        *,
        chain: str,
        address: Optional[str] = None,
        event: Optional[str] = None,
        limit: int = 500,
    ) -> List[LedgerEventEntity]:
        query: Dict[str, Any] = {"chain": _norm_lower(chain)}
        if address:
            query["address"] = to_address(address)
        if event:
            query["event"] = event

        cursor = (
            self._collection
            .find(query)
            .sort([("block_number", -1), ("log_index", -1)])
            .limit(int(limit))
        )
        return [LedgerEventEntity.from_mongo(doc) for doc in cursor]
