from typing import Optional
from pydantic import BaseModel, Field

from adapters.entry.http.dtos.tx_dtos import TxRequest


class DeployTokenRequest(TxRequest):
    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)


class TokenTransferRequest(TxRequest):
    to: str
    amount: int = Field(..., ge=0)


class TokenApproveRequest(TxRequest):
    spender: str
    amount: int = Field(..., ge=0)


class AdvanceTimeRequest(BaseModel):
    seconds: int = Field(..., ge=0)


class SaveSnapshotRequest(BaseModel):
    label: Optional[str] = None


class RestoreSnapshotRequest(BaseModel):
    snapshot_id: Optional[str] = Field(default=None, description="Latest snapshot of this chain when omitted.")
