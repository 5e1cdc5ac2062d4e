# adapters/chain/wrapper_token.py
from typing import Any, Dict

from core.contracts.wrapper_erc20 import WrapperERC20
from core.domain.schemas.onchain_types import LedgerCall
from core.services.ledger import Ledger
from core.services.normalize import to_address

ABI_WRAPPER_ERC20 = WrapperERC20.abi()


class WrapperTokenAdapter:
    """
    Thin wrapper for one WrapperERC20 proxy (a wrapped token).
    """

    def __init__(self, ledger: Ledger, address: str):
        if not address:
            raise RuntimeError("WrapperTokenAdapter: address not configured")
        self.ledger = ledger
        self.address = to_address(address)

    def _view(self, fn: str, *args: Any) -> Any:
        return self.ledger.call(self.address, fn, *args)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def underlying_token(self) -> str:
        return self._view("underlyingToken")

    def factory(self) -> str:
        return self._view("factory")

    def balance_of(self, account: str) -> int:
        return int(self._view("balanceOf", to_address(account)))

    def total_supply(self) -> int:
        return int(self._view("totalSupply"))

    def total_underlying(self) -> int:
        return int(self._view("totalUnderlying"))

    def get_info(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self._view("name"),
            "symbol": self._view("symbol"),
            "decimals": int(self._view("decimals")),
            "factory": self.factory(),
            "owner": self._view("owner"),
            "implementation": self.ledger.implementation_of(self.address),
            "totalSupply": self.total_supply(),
            "totalUnderlying": self.total_underlying(),
        }

    # ---------------- fn builders (for TxService.send) ----------------

    def _fn(self, fn: str, *args: Any) -> LedgerCall:
        return LedgerCall(to=self.address, fn=fn, args=tuple(args))

    def fn_deposit(self, amount: int) -> LedgerCall:
        return self._fn("deposit", int(amount))

    def fn_deposit_with_permit(
        self, owner: str, beneficiary: str, amount: int, deadline: int, v: int, r: str, s: str
    ) -> LedgerCall:
        return self._fn(
            "depositWithPermit", to_address(owner), to_address(beneficiary), int(amount), int(deadline), int(v), r, s
        )

    def fn_withdraw(self, amount: int) -> LedgerCall:
        return self._fn("withdraw", int(amount))

    def fn_transfer(self, to: str, amount: int) -> LedgerCall:
        return self._fn("transfer", to_address(to), int(amount))
