from __future__ import annotations

from typing import Any, Dict

from pydantic import ConfigDict, Field

from .base_entity import MongoEntity


class LedgerEventEntity(MongoEntity):
    """
    Mongo document (collection: ledger_events).

    One committed event log. `args` keeps the decoded event parameters; uint
    values that overflow int64 are stored as decimal strings.
    """

    chain: str
    block_number: int
    tx_hash: str
    log_index: int
    address: str
    event: str
    signature: str
    topic: str
    args: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow", use_enum_values=True)
