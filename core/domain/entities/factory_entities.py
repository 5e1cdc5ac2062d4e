from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict

from core.domain.enums.factory_enums import FactoryStatus
from .base_entity import MongoEntity


class WrapperFactoryEntity(MongoEntity):
    """
    Mongo document (collection: wrapper_factories).
    Represents a WrapperFactory deployment: the proxy address users talk to,
    the implementation behind it and the shared WrapperERC20 implementation.
    """

    chain: str
    address: str
    status: FactoryStatus
    tx_hash: Optional[str] = None

    factory_implementation: str
    wrapper_implementation: str
    deployer: str
    administrator: str
    operator: str
    treasurer: str
    fee_receiver: str
    initial_fee: int

    model_config = ConfigDict(extra="allow", use_enum_values=True)
