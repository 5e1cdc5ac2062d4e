from pydantic import BaseModel, Field

from adapters.entry.http.dtos.tx_dtos import TxRequest


class AmountRequest(TxRequest):
    amount: int = Field(..., ge=0)


class TransferRequest(TxRequest):
    to: str
    amount: int = Field(..., ge=0)


class DepositWithPermitRequest(TxRequest):
    owner: str
    beneficiary: str
    amount: int = Field(..., ge=0)
    deadline: int = Field(..., ge=0)
    v: int = Field(..., ge=0, le=255)
    r: str
    s: str


class DepositQuoteOut(BaseModel):
    amount: int
    fee_rate: int
    fee: int
    net_amount: int
    fee_receiver: str
