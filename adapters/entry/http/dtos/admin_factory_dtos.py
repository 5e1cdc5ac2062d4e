from typing import Literal, Optional
from pydantic import BaseModel, Field

from adapters.entry.http.dtos.tx_dtos import TxRequest
from adapters.entry.http.dtos.wrapper_factory_dtos import FollowUpCall


class CreateWrapperFactoryRequest(TxRequest):
    administrator: str
    operator: str
    treasurer: str
    fee_receiver: str
    initial_fee: int = Field(default=0, ge=0)


class DeployImplementationRequest(TxRequest):
    contract: Literal["WrapperFactory", "WrapperERC20"]


class UpgradeFactoryRequest(TxRequest):
    new_implementation: str
    call: Optional[FollowUpCall] = None
