from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from adapters.chain.erc20_token import UnderlyingTokenAdapter
from adapters.chain.wrapper_factory import WrapperFactoryAdapter
from adapters.chain.wrapper_token import WrapperTokenAdapter
from adapters.external.database.ledger_events_repository_mongodb import LedgerEventsRepositoryMongoDB
from config import get_settings
from core.contracts.wrapper_erc20 import FEE_DENOMINATOR
from core.domain.enums.tx_enums import GasStrategy
from core.domain.repositories.ledger_events_repository_interface import LedgerEventsRepositoryInterface
from core.domain.schemas.onchain_types import WrapperInfo
from core.services.ledger import Ledger
from core.services.ledger_cache import get_ledger
from core.services.normalize import to_address
from core.services.tx_service import TxService
from core.services.utils import to_json_safe


@dataclass
class WrapperUseCase:
    ledger: Ledger
    txs: TxService
    events_repo: Optional[LedgerEventsRepositoryInterface]
    chain: str

    @classmethod
    def from_settings(cls) -> "WrapperUseCase":
        s = get_settings()
        ledger = get_ledger()
        events_repo = LedgerEventsRepositoryMongoDB() if s.PERSIST_EVENTS else None
        return cls(
            ledger=ledger,
            txs=TxService(ledger, events_repo=events_repo, chain=s.CHAIN_NAME),
            events_repo=events_repo,
            chain=s.CHAIN_NAME,
        )

    def _wrapper(self, address: str) -> WrapperTokenAdapter:
        return WrapperTokenAdapter(self.ledger, address)

    def _underlying_of(self, wrapper: WrapperTokenAdapter) -> UnderlyingTokenAdapter:
        return UnderlyingTokenAdapter(self.ledger, wrapper.underlying_token())

    # ---------------- views ----------------

    def get_wrapper_info(self, wrapper: str) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        info = WrapperInfo(underlying=self._underlying_of(w).meta(), **w.get_info())
        return to_json_safe(info.model_dump(by_alias=True), big_ints_as_str=True)

    def get_balances(self, wrapper: str, account: str) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        u = self._underlying_of(w)
        return to_json_safe(
            {
                "account": to_address(account),
                "wrapped_balance": w.balance_of(account),
                "underlying_balance": u.balance_of(account),
                "underlying_allowance": u.allowance(account, w.address),
                "permit_nonce": u.nonces(account),
            },
            big_ints_as_str=True,
        )

    def quote_deposit(self, wrapper: str, amount: int) -> Dict[str, Any]:
        """
        Fee split a deposit of `amount` would get at the factory's current rate.
        """
        w = self._wrapper(wrapper)
        f = WrapperFactoryAdapter(self.ledger, w.factory())
        rate = f.deposit_fee()
        fee = int(amount) * rate // FEE_DENOMINATOR
        return to_json_safe(
            {
                "amount": int(amount),
                "fee_rate": rate,
                "fee": fee,
                "net_amount": int(amount) - fee,
                "fee_receiver": f.fee_receiver(),
            },
            big_ints_as_str=True,
        )

    def get_events(self, wrapper: str, *, event: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        address = to_address(wrapper)
        if self.events_repo is not None:
            rows = self.events_repo.get_events(chain=self.chain, address=address, event=event, limit=limit)
            return [r.model_dump() for r in rows]
        logs = self.ledger.get_logs(address=address, event=event)
        return to_json_safe([log.as_dict() for log in reversed(logs[-int(limit):])], big_ints_as_str=True)

    # ---------------- tx runners ----------------

    def approve_underlying(
        self, wrapper: str, *, sender: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        u = self._underlying_of(w)
        res = self.txs.send(to_address(sender), u.fn_approve(w.address, amount), gas_strategy=gas_strategy)
        res["result"] = {"token": u.address, "spender": w.address, "amount": str(int(amount))}
        return res

    def deposit(
        self, wrapper: str, *, sender: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        res = self.txs.send(to_address(sender), w.fn_deposit(amount), gas_strategy=gas_strategy)
        res["result"] = self._deposit_result(res)
        return res

    def deposit_with_permit(
        self,
        wrapper: str,
        *,
        sender: str,
        owner: str,
        beneficiary: str,
        amount: int,
        deadline: int,
        v: int,
        r: str,
        s: str,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        call = w.fn_deposit_with_permit(owner, beneficiary, amount, deadline, v, r, s)
        res = self.txs.send(to_address(sender), call, gas_strategy=gas_strategy)
        res["result"] = self._deposit_result(res)
        return res

    def withdraw(
        self, wrapper: str, *, sender: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        res = self.txs.send(to_address(sender), w.fn_withdraw(amount), gas_strategy=gas_strategy)
        res["result"] = {"amount": str(int(amount)), "wrapped_balance": str(w.balance_of(sender))}
        return res

    def transfer(
        self, wrapper: str, *, sender: str, to: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        w = self._wrapper(wrapper)
        res = self.txs.send(to_address(sender), w.fn_transfer(to, amount), gas_strategy=gas_strategy)
        res["result"] = {"to": to_address(to), "amount": str(int(amount))}
        return res

    def _deposit_result(self, res: Dict[str, Any]) -> Dict[str, Any]:
        for log in res.get("logs") or []:
            if log["event"] == "Deposit":
                args = log["args"]
                return {
                    "beneficiary": args["user"],
                    "amount": str(args["amount"]),
                    "fee": str(args["fee"]),
                    "net_amount": str(args["netAmount"]),
                    "fee_receiver": args["feeReceiver"],
                }
        return {}
