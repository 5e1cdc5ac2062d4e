from typing import Any, List, Optional, Tuple
from pydantic import BaseModel, Field

from adapters.entry.http.dtos.tx_dtos import TxRequest


class FactoryConfigOut(BaseModel):
    address: str
    implementation: Optional[str] = None
    wrapperImplementation: str
    feeReceiver: str
    depositFee: int
    maxFee: int
    feeDenominator: int
    wrappedTokens: List[str]


class DeployWrappedTokenRequest(TxRequest):
    underlying: str


class SetImplementationRequest(TxRequest):
    implementation: str


class SetFeeReceiverRequest(TxRequest):
    fee_receiver: str


class SetDepositFeeRequest(TxRequest):
    fee: int = Field(..., ge=0, description="Basis points over 10000; must stay below MAX_FEE (2000).")


class RoleRequest(TxRequest):
    role: str = Field(..., description="ADMINISTRATOR | OPERATOR | TREASURER (or *_ROLE, or a bytes32 id)")
    account: str


class RenounceRoleRequest(TxRequest):
    role: str


class UpgradeWrappedTokenRequest(TxRequest):
    wrapper: str
    new_implementation: str


class FollowUpCall(BaseModel):
    fn: str
    args: List[Any] = Field(default_factory=list)

    def as_call(self) -> Tuple[str, Tuple[Any, ...]]:
        return self.fn, tuple(self.args)
