from __future__ import annotations

from typing import List

from core.contracts.access_control import AccessControl
from core.contracts.base import Event, external, register_contract, view
from core.contracts.initializable import Initializable, initializer
from core.contracts.uups import UUPSUpgradeable
from core.domain.enums.role_enums import Role
from core.services.exceptions import (
    FeeTooHigh,
    InvalidRole,
    TokenAlreadyWrapped,
    TokenNotWrapped,
    ZeroAddress,
)
from core.services.normalize import ZERO_ADDRESS
from core.services.storage import StorageSlot

MAX_FEE = 2_000
FEE_DENOMINATOR = 10_000

ADMINISTRATOR_ROLE = Role.ADMINISTRATOR.id
OPERATOR_ROLE = Role.OPERATOR.id
TREASURER_ROLE = Role.TREASURER.id

WRAPPED_TOKEN_CREATE = Event.parse("WrappedTokenCreate(address indexed underlying, address indexed wrappedToken)")
FEE_RECEIVER_CHANGED = Event.parse("FeeReceiverChanged(address indexed newFeeReceiver)")
DEPOSIT_FEE_CHANGED = Event.parse("DepositFeeChanged(uint256 newFee)")
IMPLEMENTATION_CHANGED = Event.parse("ImplementationChanged(address indexed newImplementation)")
# same names as the AccessControl events, distinct two-argument signatures
FACTORY_ROLE_GRANTED = Event.parse("RoleGranted(bytes32 indexed role, address indexed account)")
FACTORY_ROLE_REVOKED = Event.parse("RoleRevoked(bytes32 indexed role, address indexed account)")


@register_contract
class WrapperFactory(Initializable, AccessControl, UUPSUpgradeable):
    """
    Registry and deployer of wrapper tokens, one per underlying asset.

    Also the single source of the deposit fee policy (rate and receiver) that
    every wrapper reads at deposit time. Governed by three roles:
    ADMINISTRATOR (implementation, roles, upgrades), OPERATOR (fee rate) and
    TREASURER (fee receiver).
    """

    CONTRACT_NAME = "WrapperFactory"

    STORAGE_LAYOUT = (
        StorageSlot("fee_receiver", ZERO_ADDRESS),
        StorageSlot("deposit_fee", 0),
        StorageSlot("wrapper_implementation", ZERO_ADDRESS),
        StorageSlot("wrapped_tokens", []),
        StorageSlot("is_wrapped_token", {}),
    )

    def constructor(self) -> None:
        self._disable_initializers()

    @external("initialize", "address", "address", "address", "address", "uint256")
    @initializer
    def initialize(self, admin: str, operator: str, treasurer: str, fee_receiver: str, initial_fee: int) -> None:
        if initial_fee >= MAX_FEE:
            raise FeeTooHigh(initial_fee, MAX_FEE)
        if fee_receiver == ZERO_ADDRESS:
            raise ZeroAddress()

        self._set_role_admin(ADMINISTRATOR_ROLE, ADMINISTRATOR_ROLE)
        self._set_role_admin(OPERATOR_ROLE, ADMINISTRATOR_ROLE)
        self._set_role_admin(TREASURER_ROLE, ADMINISTRATOR_ROLE)

        self._grant_role(ADMINISTRATOR_ROLE, admin)
        self._grant_role(OPERATOR_ROLE, operator)
        self._grant_role(TREASURER_ROLE, treasurer)

        self.sstore("fee_receiver", fee_receiver)
        self.sstore("deposit_fee", initial_fee)

    # ---------------- wrapped tokens ----------------

    @external("deployWrappedToken", "address")
    def deploy_wrapped_token(self, underlying: str) -> str:
        if underlying == ZERO_ADDRESS:
            raise ZeroAddress()
        if self.is_wrapped(underlying):
            raise TokenAlreadyWrapped(underlying)

        implementation = self.sload("wrapper_implementation")
        if implementation == ZERO_ADDRESS:
            raise ZeroAddress()

        name = "Wrapped-" + self.static_call(underlying, "name")
        symbol = "W-" + self.static_call(underlying, "symbol")

        wrapper = self.create_proxy(implementation, "initialize", underlying, self.address, name, symbol)

        tokens: List[str] = self.sload("wrapped_tokens")
        tokens.append(wrapper)
        self.sstore("wrapped_tokens", tokens)
        self.mstore("is_wrapped_token", underlying, True)

        self.emit(WRAPPED_TOKEN_CREATE, underlying, wrapper)
        return wrapper

    @external("upgradeWrappedToken", "address", "address")
    def upgrade_wrapped_token(self, wrapper: str, new_implementation: str) -> None:
        self._check_role(ADMINISTRATOR_ROLE)
        if wrapper not in self.sload("wrapped_tokens"):
            raise TokenNotWrapped(wrapper)
        self.call(wrapper, "upgradeToAndCall", new_implementation, None)

    # ---------------- governance ----------------

    @external("setImplementation", "address")
    def set_implementation(self, implementation: str) -> None:
        self._check_role(ADMINISTRATOR_ROLE)
        if implementation == ZERO_ADDRESS:
            raise ZeroAddress()
        self.sstore("wrapper_implementation", implementation)
        self.emit(IMPLEMENTATION_CHANGED, implementation)

    @external("setFeeReceiver", "address")
    def set_fee_receiver(self, fee_receiver: str) -> None:
        self._check_role(TREASURER_ROLE)
        if fee_receiver == ZERO_ADDRESS:
            raise ZeroAddress()
        self.sstore("fee_receiver", fee_receiver)
        self.emit(FEE_RECEIVER_CHANGED, fee_receiver)

    @external("setDepositFee", "uint256")
    def set_deposit_fee(self, fee: int) -> None:
        self._check_role(OPERATOR_ROLE)
        if fee >= MAX_FEE:
            raise FeeTooHigh(fee, MAX_FEE)
        self.sstore("deposit_fee", fee)
        self.emit(DEPOSIT_FEE_CHANGED, fee)

    @external("grantRole", "bytes32", "address")
    def grant_role(self, role: str, account: str) -> None:
        self._require_known_role(role)
        super().grant_role(role, account)
        self.emit(FACTORY_ROLE_GRANTED, role, account)

    @external("revokeRole", "bytes32", "address")
    def revoke_role(self, role: str, account: str) -> None:
        self._require_known_role(role)
        super().revoke_role(role, account)
        self.emit(FACTORY_ROLE_REVOKED, role, account)

    def _require_known_role(self, role: str) -> None:
        if role not in (ADMINISTRATOR_ROLE, OPERATOR_ROLE, TREASURER_ROLE):
            raise InvalidRole("Invalid role")

    # ---------------- views ----------------

    @view("getWrappedTokens")
    def get_wrapped_tokens(self) -> List[str]:
        return self.sload("wrapped_tokens")

    @view("getFeeReceiver")
    def get_fee_receiver(self) -> str:
        return self.sload("fee_receiver")

    @view("getDepositFee")
    def get_deposit_fee(self) -> int:
        return self.sload("deposit_fee")

    @view("getImplementation")
    def get_implementation(self) -> str:
        return self.sload("wrapper_implementation")

    @view("isWrapped", "address")
    def is_wrapped(self, underlying: str) -> bool:
        return bool(self.mload("is_wrapped_token", underlying, False))

    @view("MAX_FEE")
    def max_fee(self) -> int:
        return MAX_FEE

    @view("FEE_DENOMINATOR")
    def fee_denominator(self) -> int:
        return FEE_DENOMINATOR

    @view("ADMINISTRATOR_ROLE")
    def administrator_role(self) -> str:
        return ADMINISTRATOR_ROLE

    @view("OPERATOR_ROLE")
    def operator_role(self) -> str:
        return OPERATOR_ROLE

    @view("TREASURER_ROLE")
    def treasurer_role(self) -> str:
        return TREASURER_ROLE

    # ---------------- upgrades ----------------

    def _authorize_upgrade(self, new_implementation: str) -> None:
        self._check_role(ADMINISTRATOR_ROLE)
