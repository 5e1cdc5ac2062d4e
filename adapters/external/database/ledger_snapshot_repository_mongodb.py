# adapters/external/database/ledger_snapshot_repository_mongodb.py
from __future__ import annotations

from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection
from pymongo.database import Database

from adapters.external.database.helper_repo import sanitize_for_mongo
from adapters.external.database.mongo_client import get_mongo_db
from core.domain.entities.ledger_snapshot_entity import LedgerSnapshotEntity
from core.domain.repositories.ledger_snapshot_repository_interface import LedgerSnapshotRepositoryInterface
from core.services.normalize import _norm_lower


class LedgerSnapshotRepositoryMongoDB(LedgerSnapshotRepositoryInterface):
    """
    Repository for whole-ledger snapshots.

    Collection: ledger_snapshots
    Account storage is kept as a JSON string per account, so 256-bit values
    never touch BSON's int64.
    """

    COLLECTION_NAME = "ledger_snapshots"

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db: Database = db if db is not None else get_mongo_db()
        self._collection: Collection = self._db[self.COLLECTION_NAME]

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        self._collection.create_index(
            [("chain", 1), ("created_at", -1)], name="ix_ledger_snapshots_chain_created_at_desc"
        )

    def insert(self, snapshot: LedgerSnapshotEntity) -> str:
        snapshot = snapshot.touch_for_insert()
        doc = sanitize_for_mongo(snapshot.to_mongo())
        doc["chain"] = _norm_lower(doc.get("chain"))
        res = self._collection.insert_one(doc)
        return str(res.inserted_id)

    def get_latest(self, *, chain: str) -> Optional[LedgerSnapshotEntity]:
        doc = self._collection.find_one({"chain": _norm_lower(chain)}, sort=[("created_at", -1)])
        return LedgerSnapshotEntity.from_mongo(doc)

    def get_by_id(self, snapshot_id: str) -> Optional[LedgerSnapshotEntity]:
        try:
            oid = ObjectId(snapshot_id)
        except InvalidId:
            return None
        return LedgerSnapshotEntity.from_mongo(self._collection.find_one({"_id": oid}))

    def list_recent(self, *, chain: str, limit: int = 20) -> List[LedgerSnapshotEntity]:
        cursor = (
            self._collection
            .find({"chain": _norm_lower(chain)}, projection={"accounts": 0})
            .sort("created_at", -1)
            .limit(int(limit))
        )
        return [LedgerSnapshotEntity.from_mongo(doc) for doc in cursor]
