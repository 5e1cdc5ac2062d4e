# adapters/chain/erc20_token.py
from typing import Any

from core.domain.schemas.onchain_types import Erc20Meta, LedgerCall
from core.services.ledger import Ledger
from core.services.normalize import to_address


class UnderlyingTokenAdapter:
    """
    Thin wrapper for a plain ERC-20 (the asset being wrapped).
    """

    def __init__(self, ledger: Ledger, address: str):
        if not address:
            raise RuntimeError("UnderlyingTokenAdapter: address not configured")
        self.ledger = ledger
        self.address = to_address(address)

    def _view(self, fn: str, *args: Any) -> Any:
        return self.ledger.call(self.address, fn, *args)

    def meta(self) -> Erc20Meta:
        return Erc20Meta(
            address=self.address,
            name=self._view("name"),
            symbol=self._view("symbol"),
            decimals=int(self._view("decimals")),
        )

    def balance_of(self, account: str) -> int:
        return int(self._view("balanceOf", to_address(account)))

    def allowance(self, owner: str, spender: str) -> int:
        return int(self._view("allowance", to_address(owner), to_address(spender)))

    def nonces(self, owner: str) -> int:
        return int(self._view("nonces", to_address(owner)))

    def domain_separator(self) -> str:
        return self._view("DOMAIN_SEPARATOR")

    # ---------------- fn builders (for TxService.send) ----------------

    def fn_approve(self, spender: str, amount: int) -> LedgerCall:
        return LedgerCall(to=self.address, fn="approve", args=(to_address(spender), int(amount)))

    def fn_transfer(self, to: str, amount: int) -> LedgerCall:
        return LedgerCall(to=self.address, fn="transfer", args=(to_address(to), int(amount)))
