"""
Contracts that only exist for tests: misbehaving underlying tokens and
upgrade targets. Importing this module registers them with the ledger.
"""

from __future__ import annotations

from core.contracts.access_control import AccessControl
from core.contracts.base import external, register_contract, view
from core.contracts.base_token import BaseToken
from core.contracts.initializable import Initializable
from core.contracts.uups import UUPSUpgradeable
from core.contracts.wrapper_erc20 import WrapperERC20
from core.contracts.wrapper_factory import ADMINISTRATOR_ROLE, WrapperFactory
from core.services.normalize import ZERO_ADDRESS
from core.services.storage import StorageSlot


@register_contract
class FalseReturningToken(BaseToken):
    """ERC-20 whose transfers report failure (return False) once switched on."""

    CONTRACT_NAME = "FalseReturningToken"

    STORAGE_LAYOUT = (StorageSlot("fail_transfers", False),)

    @external("setFailTransfers", "bool")
    def set_fail_transfers(self, fail: bool) -> None:
        self.sstore("fail_transfers", fail)

    @external("transfer", "address", "uint256")
    def transfer(self, to: str, value: int) -> bool:
        if self.sload("fail_transfers"):
            return False
        return super().transfer(to, value)

    @external("transferFrom", "address", "address", "uint256")
    def transfer_from(self, sender: str, to: str, value: int) -> bool:
        if self.sload("fail_transfers"):
            return False
        return super().transfer_from(sender, to, value)


@register_contract
class ReentrantToken(BaseToken):
    """ERC-20 that calls back into `attack_target.deposit` from transferFrom."""

    CONTRACT_NAME = "ReentrantToken"

    STORAGE_LAYOUT = (StorageSlot("attack_target", ZERO_ADDRESS),)

    @external("setAttackTarget", "address")
    def set_attack_target(self, target: str) -> None:
        self.sstore("attack_target", target)

    @external("transferFrom", "address", "address", "uint256")
    def transfer_from(self, sender: str, to: str, value: int) -> bool:
        target = self.sload("attack_target")
        if target != ZERO_ADDRESS:
            self.call(target, "deposit", value)
        return super().transfer_from(sender, to, value)


@register_contract
class WrapperFactoryV2(WrapperFactory):
    CONTRACT_NAME = "WrapperFactoryV2"

    STORAGE_LAYOUT = (StorageSlot("version", ""),)

    @external("setVersion", "string")
    def set_version(self, version: str) -> None:
        self._check_role(ADMINISTRATOR_ROLE)
        self.sstore("version", version)

    @view("testProxy")
    def test_proxy(self) -> str:
        return self.sload("version")


@register_contract
class ReorderedFactory(Initializable, AccessControl, UUPSUpgradeable):
    """Swaps two WrapperFactory slots, so it must never replace it."""

    CONTRACT_NAME = "ReorderedFactory"

    STORAGE_LAYOUT = (
        StorageSlot("deposit_fee", 0),
        StorageSlot("fee_receiver", ZERO_ADDRESS),
    )

    def constructor(self) -> None:
        self._disable_initializers()

    def _authorize_upgrade(self, new_implementation: str) -> None:
        self._check_role(ADMINISTRATOR_ROLE)


@register_contract
class WrapperERC20V2(WrapperERC20):
    CONTRACT_NAME = "WrapperERC20V2"

    @view("version")
    def version(self) -> int:
        return 2
