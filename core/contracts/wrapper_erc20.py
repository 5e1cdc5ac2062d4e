from __future__ import annotations

from core.contracts.base import Event, external, register_contract, view
from core.contracts.erc20 import ERC20
from core.contracts.initializable import Initializable, initializer
from core.contracts.ownable import Ownable
from core.contracts.reentrancy_guard import ReentrancyGuard, non_reentrant
from core.contracts.uups import UUPSUpgradeable
from core.services.exceptions import (
    InsufficientBalance,
    InvalidFactory,
    InvalidUnderlyingToken,
    TransferFailed,
    ZeroAmount,
)
from core.services.normalize import ZERO_ADDRESS
from core.services.storage import StorageSlot

FEE_DENOMINATOR = 10_000

DEPOSIT = Event.parse(
    "Deposit(address indexed user, uint256 amount, uint256 fee, uint256 netAmount, address feeReceiver)"
)
WITHDRAWAL = Event.parse("Withdrawal(address indexed user, uint256 amount, uint256 underlyingAmount)")


@register_contract
class WrapperERC20(Initializable, ERC20, Ownable, ReentrancyGuard, UUPSUpgradeable):
    """
    Fee-taking 1:1 wrapper around one underlying ERC-20.

    Deposits pull `amount` of the underlying, forward the factory's fee share
    to the fee receiver and mint the rest as wrapped tokens; withdrawals burn
    wrapped tokens and release the same amount of underlying. The fee rate and
    receiver are read from the factory on every deposit, so governance changes
    apply to every wrapper immediately.
    """

    CONTRACT_NAME = "WrapperERC20"

    STORAGE_LAYOUT = (
        StorageSlot("underlying_token", ZERO_ADDRESS),
        StorageSlot("factory", ZERO_ADDRESS),
    )

    def constructor(self) -> None:
        self._disable_initializers()

    @external("initialize", "address", "address", "string", "string")
    @initializer
    def initialize(self, underlying_token: str, factory: str, name: str, symbol: str) -> None:
        if underlying_token == ZERO_ADDRESS:
            raise InvalidUnderlyingToken()
        if factory == ZERO_ADDRESS:
            raise InvalidFactory()

        self._erc20_init(name, symbol)
        self._ownable_init(factory)
        self.sstore("underlying_token", underlying_token)
        self.sstore("factory", factory)

    # ---------------- views ----------------

    @view("underlyingToken")
    def underlying_token(self) -> str:
        return self.sload("underlying_token")

    @view("factory")
    def factory(self) -> str:
        return self.sload("factory")

    @view("FEE_DENOMINATOR")
    def fee_denominator(self) -> int:
        return FEE_DENOMINATOR

    @view("totalUnderlying")
    def total_underlying(self) -> int:
        return self.static_call(self.underlying_token(), "balanceOf", self.address)

    # ---------------- deposit / withdraw ----------------

    @external("deposit", "uint256")
    @non_reentrant
    def deposit(self, amount: int) -> None:
        self._deposit(self.msg_sender, self.msg_sender, amount)

    @external("depositWithPermit", "address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32")
    @non_reentrant
    def deposit_with_permit(
        self, owner: str, beneficiary: str, amount: int, deadline: int, v: int, r: str, s: str
    ) -> None:
        self.call(self.underlying_token(), "permit", owner, self.address, amount, deadline, v, r, s)
        self._deposit(owner, beneficiary, amount)

    @external("withdraw", "uint256")
    @non_reentrant
    def withdraw(self, amount: int) -> None:
        if amount == 0:
            raise ZeroAmount()
        caller = self.msg_sender
        if self.balance_of(caller) < amount:
            raise InsufficientBalance(caller, amount)

        self._burn(caller, amount)
        if not self.call(self.underlying_token(), "transfer", caller, amount):
            raise TransferFailed()
        self.emit(WITHDRAWAL, caller, amount, amount)

    def _deposit(self, sender: str, beneficiary: str, amount: int) -> None:
        if amount == 0:
            raise ZeroAmount()

        factory = self.factory()
        fee_receiver = self.static_call(factory, "getFeeReceiver")
        fee_rate = self.static_call(factory, "getDepositFee")

        fee = amount * fee_rate // FEE_DENOMINATOR
        net_amount = amount - fee

        underlying = self.underlying_token()
        if not self.call(underlying, "transferFrom", sender, self.address, amount):
            raise TransferFailed()
        if fee > 0 and not self.call(underlying, "transfer", fee_receiver, fee):
            raise TransferFailed()

        self._mint(beneficiary, net_amount)
        self.emit(DEPOSIT, beneficiary, amount, fee, net_amount, fee_receiver)

    # ---------------- upgrades ----------------

    def _authorize_upgrade(self, new_implementation: str) -> None:
        self._check_owner()
