from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.domain.enums.tx_enums import GasStrategy


class TxRequest(BaseModel):
    sender: str = Field(..., description="Account submitting the transaction (msg.sender).")
    gas_strategy: GasStrategy = Field(default=GasStrategy.BUFFERED, description="default|buffered|aggressive")


class TxGasOut(BaseModel):
    limit: int
    used: int


class TxBudgetOut(BaseModel):
    max_gas: Optional[int] = None
    budget_exceeded: bool


class TxResponse(BaseModel):
    tx_hash: str
    status: int
    block: int
    gas: TxGasOut
    logs: List[Dict[str, Any]] = Field(default_factory=list)
    budget: TxBudgetOut
    result: Dict[str, Any]
    ts: str
