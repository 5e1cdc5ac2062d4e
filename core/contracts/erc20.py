from __future__ import annotations

from core.contracts.base import Contract, Event, external, view
from core.services.exceptions import (
    ERC20InsufficientAllowance,
    ERC20InsufficientBalance,
    ERC20InvalidApprover,
    ERC20InvalidReceiver,
    ERC20InvalidSender,
    ERC20InvalidSpender,
)
from core.services.normalize import MAX_UINT256, ZERO_ADDRESS
from core.services.storage import StorageSlot

TRANSFER = Event.parse("Transfer(address indexed from, address indexed to, uint256 value)")
APPROVAL = Event.parse("Approval(address indexed owner, address indexed spender, uint256 value)")


class ERC20(Contract):
    """
    Fungible token ledger with the OpenZeppelin v5 error surface.

    An allowance of MAX_UINT256 is treated as infinite and never decremented.
    """

    DECIMALS = 18

    STORAGE_LAYOUT = (
        StorageSlot("_name", ""),
        StorageSlot("_symbol", ""),
        StorageSlot("_total_supply", 0),
        StorageSlot("_balances", {}),
        StorageSlot("_allowances", {}),
    )

    def _erc20_init(self, name: str, symbol: str) -> None:
        self.sstore("_name", name)
        self.sstore("_symbol", symbol)

    # ---------------- views ----------------

    @view("name")
    def name(self) -> str:
        return self.sload("_name")

    @view("symbol")
    def symbol(self) -> str:
        return self.sload("_symbol")

    @view("decimals")
    def decimals(self) -> int:
        return self.DECIMALS

    @view("totalSupply")
    def total_supply(self) -> int:
        return self.sload("_total_supply")

    @view("balanceOf", "address")
    def balance_of(self, account: str) -> int:
        return self.mload("_balances", account)

    @view("allowance", "address", "address")
    def allowance(self, owner: str, spender: str) -> int:
        return self.mload("_allowances", (owner, spender))

    # ---------------- external ----------------

    @external("transfer", "address", "uint256")
    def transfer(self, to: str, value: int) -> bool:
        self._transfer(self.msg_sender, to, value)
        return True

    @external("approve", "address", "uint256")
    def approve(self, spender: str, value: int) -> bool:
        self._approve(self.msg_sender, spender, value)
        return True

    @external("transferFrom", "address", "address", "uint256")
    def transfer_from(self, sender: str, to: str, value: int) -> bool:
        self._spend_allowance(sender, self.msg_sender, value)
        self._transfer(sender, to, value)
        return True

    # ---------------- internal ----------------

    def _transfer(self, sender: str, to: str, value: int) -> None:
        if sender == ZERO_ADDRESS:
            raise ERC20InvalidSender(ZERO_ADDRESS)
        if to == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(ZERO_ADDRESS)
        self._update(sender, to, value)

    def _update(self, sender: str, to: str, value: int) -> None:
        if sender == ZERO_ADDRESS:
            self.sstore("_total_supply", self.sload("_total_supply") + value)
        else:
            balance = self.mload("_balances", sender)
            if balance < value:
                raise ERC20InsufficientBalance(sender, balance, value)
            self.mstore("_balances", sender, balance - value)

        if to == ZERO_ADDRESS:
            self.sstore("_total_supply", self.sload("_total_supply") - value)
        else:
            self.mstore("_balances", to, self.mload("_balances", to) + value)

        self.emit(TRANSFER, sender, to, value)

    def _mint(self, account: str, value: int) -> None:
        if account == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(ZERO_ADDRESS)
        self._update(ZERO_ADDRESS, account, value)

    def _burn(self, account: str, value: int) -> None:
        if account == ZERO_ADDRESS:
            raise ERC20InvalidSender(ZERO_ADDRESS)
        self._update(account, ZERO_ADDRESS, value)

    def _approve(self, owner: str, spender: str, value: int, emit_event: bool = True) -> None:
        if owner == ZERO_ADDRESS:
            raise ERC20InvalidApprover(ZERO_ADDRESS)
        if spender == ZERO_ADDRESS:
            raise ERC20InvalidSpender(ZERO_ADDRESS)
        self.mstore("_allowances", (owner, spender), value)
        if emit_event:
            self.emit(APPROVAL, owner, spender, value)

    def _spend_allowance(self, owner: str, spender: str, value: int) -> None:
        current = self.allowance(owner, spender)
        if current == MAX_UINT256:
            return
        if current < value:
            raise ERC20InsufficientAllowance(spender, current, value)
        self._approve(owner, spender, current - value, emit_event=False)
