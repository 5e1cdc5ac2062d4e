from __future__ import annotations

from typing import Any, List, Tuple

from pydantic import BaseModel, Field


class Erc20Meta(BaseModel):
    address: str
    name: str
    symbol: str
    decimals: int


class LedgerCall(BaseModel):
    """
    A prepared contract call: `to.fn(*args)`. Built by the chain adapters and
    executed by TxService.
    """

    to: str
    fn: str
    args: Tuple[Any, ...] = ()

    def describe(self) -> str:
        return f"{self.to}.{self.fn}({', '.join(repr(a) for a in self.args)})"


class FactoryConfig(BaseModel):
    address: str
    implementation: str
    wrapper_implementation: str = Field(..., alias="wrapperImplementation")
    fee_receiver: str = Field(..., alias="feeReceiver")
    deposit_fee: int = Field(..., alias="depositFee")
    max_fee: int = Field(..., alias="maxFee")
    fee_denominator: int = Field(..., alias="feeDenominator")
    wrapped_tokens: List[str] = Field(default_factory=list, alias="wrappedTokens")

    model_config = {"populate_by_name": True}


class WrapperInfo(BaseModel):
    address: str
    name: str
    symbol: str
    decimals: int
    underlying: Erc20Meta
    factory: str
    owner: str
    implementation: str
    total_supply: int = Field(..., alias="totalSupply")
    total_underlying: int = Field(..., alias="totalUnderlying")

    model_config = {"populate_by_name": True}
