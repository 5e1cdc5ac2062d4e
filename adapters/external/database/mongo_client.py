# adapters/external/database/mongo_client.py

from __future__ import annotations

from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from config import get_settings

APP_NAME = "token-wrapper-ledger"

_db: Optional[Database] = None


def _require(name: str) -> str:
    value = getattr(get_settings(), name, None)
    if not value:
        raise RuntimeError(f"{name} is not configured; the ledger repositories need it to reach MongoDB.")
    return value


def get_mongo_db() -> Database:
    """
    Database holding the ledger collections (ledger_events, ledger_snapshots,
    wrapper_factories).

    Built lazily from MONGO_URI / MONGO_DB on first use and shared by every
    repository constructed without an explicit `db`. Server selection gives up
    after MONGO_TIMEOUT_MS so a missing Mongo fails the request instead of
    hanging it.
    """
    global _db
    if _db is None:
        client = MongoClient(
            _require("MONGO_URI"),
            appname=APP_NAME,
            serverSelectionTimeoutMS=get_settings().MONGO_TIMEOUT_MS,
        )
        _db = client[_require("MONGO_DB")]
    return _db
