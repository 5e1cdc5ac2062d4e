# wrapper_factory_repository_mongodb.py

from __future__ import annotations

from typing import Optional, Sequence

from pymongo.collection import Collection
from pymongo.database import Database

from adapters.external.database.helper_repo import sanitize_for_mongo
from adapters.external.database.mongo_client import get_mongo_db
from core.domain.entities.factory_entities import WrapperFactoryEntity
from core.domain.enums.factory_enums import FactoryStatus
from core.domain.repositories.wrapper_factory_repository_interface import WrapperFactoryRepository
from core.services.normalize import _norm_lower, to_address


class WrapperFactoryRepositoryMongoDB(WrapperFactoryRepository):
    """
    Repository for WrapperFactory deployment records.

    Collection: wrapper_factories
    Addresses are stored in checksum form, the same form the ledger uses.
    """

    COLLECTION_NAME = "wrapper_factories"

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db: Database = db if db is not None else get_mongo_db()
        self._collection: Collection = self._db[self.COLLECTION_NAME]
        self.ensure_indexes()

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        self._collection.create_index([("chain", 1)], name="ix_wrapper_factories_chain")
        self._collection.create_index([("status", 1)], name="ix_wrapper_factories_status")
        self._collection.create_index([("created_at", -1)], name="ix_wrapper_factories_created_at_desc")
        self._collection.create_index(
            [("chain", 1), ("address", 1)], unique=True, name="ux_wrapper_factories_chain_address"
        )

    def get_latest(self, *, chain: str) -> Optional[WrapperFactoryEntity]:
        doc = self._collection.find_one({"chain": _norm_lower(chain)}, sort=[("created_at", -1)])
        return WrapperFactoryEntity.from_mongo(doc)

    def get_active(self, *, chain: str) -> Optional[WrapperFactoryEntity]:
        doc = self._collection.find_one({"chain": _norm_lower(chain), "status": FactoryStatus.ACTIVE.value})
        return WrapperFactoryEntity.from_mongo(doc)

    def get_by_address(self, *, chain: str, address: str) -> Optional[WrapperFactoryEntity]:
        doc = self._collection.find_one({"chain": _norm_lower(chain), "address": to_address(address)})
        return WrapperFactoryEntity.from_mongo(doc)

    def insert(self, entity: WrapperFactoryEntity) -> None:
        entity = entity.touch_for_insert()
        doc = sanitize_for_mongo(entity.to_mongo())
        doc["chain"] = _norm_lower(doc.get("chain"))
        self._collection.insert_one(doc)

    def set_all_status(self, *, chain: str, status: FactoryStatus) -> int:
        res = self._collection.update_many({"chain": _norm_lower(chain)}, {"$set": {"status": status.value}})
        return int(res.modified_count)

    def list_all(self, *, chain: str, limit: int = 50) -> Sequence[WrapperFactoryEntity]:
        cursor = self._collection.find({"chain": _norm_lower(chain)}, sort=[("created_at", -1)]).limit(int(limit))
        return [WrapperFactoryEntity.from_mongo(d) for d in cursor if d]
