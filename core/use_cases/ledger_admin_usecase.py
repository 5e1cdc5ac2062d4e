from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from adapters.chain.erc20_token import UnderlyingTokenAdapter
from adapters.external.database.ledger_snapshot_repository_mongodb import LedgerSnapshotRepositoryMongoDB
from config import get_settings
from core.contracts.base_token import BaseToken
from core.domain.enums.tx_enums import GasStrategy
from core.domain.repositories.ledger_snapshot_repository_interface import LedgerSnapshotRepositoryInterface
from core.services.ledger import Ledger
from core.services.ledger_cache import get_ledger, install_ledger, ledger_lock
from core.services.normalize import to_address
from core.services.tx_service import TxService
from core.services.utils import to_json_safe

logger = logging.getLogger(__name__)


@dataclass
class LedgerAdminUseCase:
    ledger: Ledger
    txs: TxService
    snapshot_repo: LedgerSnapshotRepositoryInterface
    chain: str

    @classmethod
    def from_settings(cls) -> "LedgerAdminUseCase":
        s = get_settings()
        ledger = get_ledger()
        return cls(
            ledger=ledger,
            txs=TxService(ledger, chain=s.CHAIN_NAME),
            snapshot_repo=LedgerSnapshotRepositoryMongoDB(),
            chain=s.CHAIN_NAME,
        )

    # ---------------- status ----------------

    def status(self) -> Dict[str, Any]:
        contracts = [
            {
                "address": a.address,
                "code": self.ledger.code_of(a.address).CONTRACT_NAME,
                "proxy": a.is_proxy,
                "implementation": a.implementation,
            }
            for a in self.ledger.accounts.values()
        ]
        return {
            "chain": self.chain,
            "chain_id": self.ledger.chain_id,
            "block_number": self.ledger.block_number,
            "timestamp": self.ledger.timestamp,
            "block_gas_limit": self.ledger.block_gas_limit,
            "tx_count": len(self.ledger.receipts),
            "contracts": contracts,
        }

    def get_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        for rcpt in reversed(self.ledger.receipts):
            if rcpt.tx_hash == tx_hash.lower():
                return to_json_safe(rcpt.as_dict(), big_ints_as_str=True)
        return None

    def advance_time(self, seconds: int) -> Dict[str, Any]:
        with ledger_lock():
            ts = self.ledger.advance_time(seconds)
        return {"timestamp": ts}

    # ---------------- test assets ----------------

    def deploy_token(
        self, *, sender: str, name: str, symbol: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.deploy(to_address(sender), BaseToken, (name, symbol), gas_strategy=gas_strategy)
        token = UnderlyingTokenAdapter(self.ledger, res["result"]["contract_address"])
        res["result"] = {
            "token": token.meta().model_dump(),
            "holder": to_address(sender),
            "supply": str(token.balance_of(sender)),
        }
        return res

    def transfer_token(
        self, token: str, *, sender: str, to: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        t = UnderlyingTokenAdapter(self.ledger, token)
        res = self.txs.send(to_address(sender), t.fn_transfer(to, amount), gas_strategy=gas_strategy)
        res["result"] = {"token": t.address, "to": to_address(to), "amount": str(int(amount))}
        return res

    def approve_token(
        self, token: str, *, sender: str, spender: str, amount: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        t = UnderlyingTokenAdapter(self.ledger, token)
        res = self.txs.send(to_address(sender), t.fn_approve(spender, amount), gas_strategy=gas_strategy)
        res["result"] = {"token": t.address, "spender": to_address(spender), "amount": str(int(amount))}
        return res

    def token_balance(self, token: str, account: str) -> Dict[str, Any]:
        t = UnderlyingTokenAdapter(self.ledger, token)
        return {"token": t.address, "account": to_address(account), "balance": str(t.balance_of(account))}

    # ---------------- snapshots ----------------

    def save_snapshot(self, *, label: Optional[str] = None) -> Dict[str, Any]:
        with ledger_lock():
            snap = self.ledger.snapshot(chain=self.chain, label=label)
        snapshot_id = self.snapshot_repo.insert(snap)
        logger.info("ledger snapshot %s saved at block %d", snapshot_id, snap.block_number)
        return {"id": snapshot_id, "block_number": snap.block_number, "accounts": len(snap.accounts), "label": label}

    def restore_snapshot(self, *, snapshot_id: Optional[str] = None) -> Dict[str, Any]:
        if snapshot_id:
            snap = self.snapshot_repo.get_by_id(snapshot_id)
        else:
            snap = self.snapshot_repo.get_latest(chain=self.chain)
        if snap is None:
            raise ValueError("Snapshot not found")

        with ledger_lock():
            restored = Ledger.from_snapshot(
                snap,
                block_gas_limit=self.ledger.block_gas_limit,
                block_time_sec=self.ledger.block_time_sec,
            )
            install_ledger(restored)
            self.ledger = restored
            self.txs.ledger = restored

        logger.info("ledger restored from snapshot %s (block %d)", snap.id, snap.block_number)
        return {"id": snap.id, "block_number": restored.block_number, "accounts": len(restored.accounts)}

    def list_snapshots(self, *, limit: int = 20) -> List[Dict[str, Any]]:
        return [
            {
                "id": s.id,
                "label": s.label,
                "block_number": s.block_number,
                "timestamp": s.timestamp,
                "created_at": s.created_at_iso,
            }
            for s in self.snapshot_repo.list_recent(chain=self.chain, limit=limit)
        ]
