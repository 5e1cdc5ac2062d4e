from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, Optional, Sequence

from config import get_settings
from core.domain.entities.ledger_event_entity import LedgerEventEntity
from core.domain.enums.tx_enums import GasStrategy
from core.domain.repositories.ledger_events_repository_interface import LedgerEventsRepositoryInterface
from core.domain.schemas.onchain_types import LedgerCall
from core.services.exceptions import (
    ContractRevert,
    TransactionBudgetExceededError,
    TransactionRevertedError,
)
from core.services.ledger import Ledger, TxReceipt
from core.services.ledger_cache import get_ledger, ledger_lock
from core.services.utils import to_json_safe

logger = logging.getLogger(__name__)


@dataclass
class _BudgetBlock:
    max_gas: Optional[int]
    budget_exceeded: bool

    def as_dict(self) -> dict:
        return {
            "max_gas": self.max_gas,
            "budget_exceeded": self.budget_exceeded,
        }


class TxService:
    """
    High-level transaction sender for ledger ops.

    Responsibilities:
    - Estimate gas with a dry run and apply the padding strategy.
    - Enforce an optional gas budget before anything is executed.
    - Execute against the ledger, one writer at a time.
    - Persist the committed event logs (when an events repository is wired).
    - Normalize successful and failure results so callers can return/persist them.
    """

    def __init__(
        self,
        ledger: Ledger | None = None,
        events_repo: LedgerEventsRepositoryInterface | None = None,
        chain: str | None = None,
    ):
        self.ledger = ledger if ledger is not None else get_ledger()
        self.events_repo = events_repo
        self.chain = (chain or get_settings().CHAIN_NAME).strip().lower()

    # ---------- internal helpers ----------

    def _pad(self, base_estimate: int, strategy: GasStrategy) -> int:
        if strategy == "default":
            padded = base_estimate
        elif strategy == "buffered":
            padded = int(base_estimate * 1.25) + 10_000
        elif strategy == "aggressive":
            padded = int(base_estimate * 1.5) + 25_000
        else:
            padded = base_estimate
        return min(padded, self.ledger.block_gas_limit)

    def _estimate_with_strategy(self, dry_run: Callable[[], TxReceipt], strategy: GasStrategy) -> Optional[int]:
        """
        Dry-runs the transaction and applies a safety buffer depending on strategy.
        Returns None when the dry run reverts: the caller then sends it with the
        block gas limit so the real execution records the revert with its named error.
        """
        try:
            base_estimate = int(dry_run().gas_used)
        except ContractRevert as exc:
            logger.debug("gas estimation reverted (%s); using block gas limit", exc)
            return None
        return self._pad(base_estimate, strategy)

    def _budget_check(self, *, gas_limit: int, max_gas: Optional[int]) -> _BudgetBlock:
        budget = _BudgetBlock(max_gas=max_gas, budget_exceeded=False)
        if max_gas is None:
            return budget
        if gas_limit > int(max_gas):
            budget.budget_exceeded = True
            raise TransactionBudgetExceededError(est_gas_limit=int(gas_limit), gas_budget=int(max_gas))
        return budget

    def _persist_logs(self, receipt: TxReceipt) -> None:
        if self.events_repo is None or not receipt.logs:
            return
        events = [
            LedgerEventEntity(
                chain=self.chain,
                block_number=log.block_number,
                tx_hash=log.tx_hash,
                log_index=log.log_index,
                address=log.address,
                event=log.event,
                signature=log.signature,
                topic=log.topic,
                args=to_json_safe(log.args, big_ints_as_str=True),
            )
            for log in receipt.logs
        ]
        self.events_repo.append_events(events)

    def _base_response(self, *, receipt: TxReceipt, gas_limit: int, budget: _BudgetBlock) -> dict:
        return to_json_safe(
            {
                "tx_hash": receipt.tx_hash,
                "status": receipt.status,
                "block": receipt.block_number,
                "gas": {
                    "limit": int(gas_limit),
                    "used": int(receipt.gas_used),
                },
                "logs": [log.as_dict() for log in receipt.logs],
                "budget": budget.as_dict(),
                "result": {
                    "return_value": receipt.return_value,
                    "contract_address": receipt.contract_address,
                },
                "ts": datetime.fromtimestamp(receipt.timestamp, UTC).isoformat(),
            }
        )

    def _execute(
        self,
        run: Callable[..., TxReceipt],
        *,
        label: str,
        gas_limit: Optional[int],
        gas_strategy: GasStrategy,
        max_gas: Optional[int],
    ) -> dict:
        with ledger_lock():
            estimate = None
            if gas_limit is not None:
                final_gas_limit = int(gas_limit)
            else:
                estimate = self._estimate_with_strategy(lambda: run(dry_run=True), gas_strategy)
                final_gas_limit = estimate if estimate is not None else self.ledger.block_gas_limit

            if gas_limit is None and estimate is None:
                # reverting call: the named error wins over the budget
                budget = _BudgetBlock(max_gas=max_gas, budget_exceeded=False)
            else:
                budget = self._budget_check(gas_limit=final_gas_limit, max_gas=max_gas)

            try:
                receipt = run(gas_limit=final_gas_limit)
            except ContractRevert as exc:
                failed = self.ledger.receipts[-1] if self.ledger.receipts else None
                raise TransactionRevertedError(
                    tx_hash=failed.tx_hash if failed else "",
                    receipt=to_json_safe(failed.as_dict()) if failed else None,
                    msg=f"{label} reverted: {exc}",
                    error=exc,
                    budget_block=budget.as_dict(),
                ) from exc

            self._persist_logs(receipt)
            return self._base_response(receipt=receipt, gas_limit=final_gas_limit, budget=budget)

    # ---------- public API ----------

    def send(
        self,
        sender: str,
        call: LedgerCall,
        *,
        gas_limit: Optional[int] = None,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
        max_gas: Optional[int] = None,
    ) -> dict:
        """
        Executes a state-changing call on the ledger.

        Args:
            sender: Externally-owned account submitting the transaction.
            call: Prepared call (see the chain adapters' fn_* builders).
            gas_limit: Force a manual gas limit instead of estimating.
            gas_strategy: "default" | "buffered" | "aggressive".
            max_gas: Optional budget in gas units. If the final gas limit is
                above it, nothing is executed. A call whose dry run reverts is
                sent regardless, so it fails with its named error.

        Returns:
            {
              "tx_hash": "0x..",
              "status": 1,
              "block": int,
              "gas": {"limit": int, "used": int},
              "logs": [...],
              "budget": {"max_gas": int|None, "budget_exceeded": bool},
              "result": {"return_value": ..., "contract_address": None},
              "ts": "ISO-8601 block timestamp"
            }

        Raises:
            TransactionBudgetExceededError: before execution, nothing changed.
            TransactionRevertedError: executed and reverted; `.error` is the named contract error.
        """

        def run(**kw: Any) -> TxReceipt:
            return self.ledger.transact(sender, call.to, call.fn, *call.args, **kw)

        return self._execute(
            run, label=call.fn, gas_limit=gas_limit, gas_strategy=gas_strategy, max_gas=max_gas
        )

    def deploy(
        self,
        sender: str,
        contract_cls: type,
        ctor_args: Sequence[Any] = (),
        *,
        gas_limit: Optional[int] = None,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
        max_gas: Optional[int] = None,
    ) -> dict:
        def run(**kw: Any) -> TxReceipt:
            return self.ledger.deploy(sender, contract_cls, *ctor_args, **kw)

        return self._execute(
            run,
            label=f"Deploy {contract_cls.__name__}",
            gas_limit=gas_limit,
            gas_strategy=gas_strategy,
            max_gas=max_gas,
        )

    def deploy_proxy(
        self,
        sender: str,
        implementation: str,
        init_fn: Optional[str] = None,
        init_args: Sequence[Any] = (),
        *,
        gas_limit: Optional[int] = None,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
        max_gas: Optional[int] = None,
    ) -> dict:
        def run(**kw: Any) -> TxReceipt:
            return self.ledger.deploy_proxy(sender, implementation, init_fn, *init_args, **kw)

        return self._execute(
            run,
            label="Deploy proxy",
            gas_limit=gas_limit,
            gas_strategy=gas_strategy,
            max_gas=max_gas,
        )
