from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base_entity import MongoEntity


class AccountSnapshot(BaseModel):
    """
    One contract account. `storage_json` is the JSON-encoded slot table so
    256-bit integers survive the round trip through BSON untouched.
    """

    address: str
    code: str
    storage_json: str
    implementation: Optional[str] = None


class LedgerSnapshotEntity(MongoEntity):
    """
    Mongo document (collection: ledger_snapshots).

    Full ledger state at a given block. Restoring a snapshot taken with an
    older contract layout fills slots added since then with their defaults.
    """

    chain: str
    chain_id: int
    block_number: int
    timestamp: int
    accounts: List[AccountSnapshot] = Field(default_factory=list)
    nonces: Dict[str, int] = Field(default_factory=dict)
    label: Optional[str] = None

    model_config = ConfigDict(extra="allow", use_enum_values=True)
