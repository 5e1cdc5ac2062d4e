# core/services/ledger.py
"""
Deterministic, in-process account ledger.

Transactions are executed one at a time, in submission order. Each one runs to
completion against a gas meter; if anything raises, every effect of that
transaction (storage, created contracts, event logs, contract nonces) is rolled
back and the error is re-raised unchanged to the caller. Only the failed-tx
receipt, the sender's nonce and the block height survive a revert.

Contracts are Python classes (see core.contracts.base). Proxy accounts keep an
implementation address and run that implementation's code against their own
storage, which is how many wrapper instances share one wrapper implementation.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from web3 import Web3

from config import get_settings
from core.contracts import catalog  # noqa: F401  registers the built-in contract code
from core.contracts.base import AbiFunction, Contract, Event, get_contract_class
from core.contracts.erc1967 import PROXY_CODE, UPGRADED
from core.domain.entities.ledger_snapshot_entity import AccountSnapshot, LedgerSnapshotEntity
from core.services.exceptions import (
    ContractNotFound,
    ContractRevert,
    ERC1967InvalidImplementation,
    OutOfGas,
    StaticCallViolation,
    StorageLayoutIncompatible,
    UUPSUnauthorizedCallContext,
)
from core.services.gas_meter import CALL_GAS, CREATE_GAS, TX_BASE_GAS, GasMeter
from core.services.normalize import ZERO_ADDRESS, to_address
from core.services.storage import apply_layout_defaults, is_layout_compatible

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 1024


@dataclass
class Account:
    address: str
    code: str
    storage: Dict[str, Any] = field(default_factory=dict)
    implementation: Optional[str] = None

    @property
    def is_proxy(self) -> bool:
        return self.code == PROXY_CODE


@dataclass
class EventLog:
    address: str
    event: str
    signature: str
    topic: str
    args: Dict[str, Any]
    log_index: int = 0
    tx_hash: str = ""
    block_number: int = 0

    def as_dict(self) -> dict:
        return {
            "address": self.address,
            "event": self.event,
            "signature": self.signature,
            "topic": self.topic,
            "args": dict(self.args),
            "log_index": self.log_index,
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
        }


@dataclass
class TxReceipt:
    tx_hash: str
    sender: str
    to: Optional[str]
    fn: str
    status: int
    gas_limit: int
    gas_used: int
    block_number: int
    timestamp: int
    logs: List[EventLog] = field(default_factory=list)
    return_value: Any = None
    contract_address: Optional[str] = None
    error: Optional[ContractRevert] = None

    def events(self, name: str) -> List[EventLog]:
        return [log for log in self.logs if log.event == name]

    def as_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "from": self.sender,
            "to": self.to,
            "fn": self.fn,
            "status": self.status,
            "gasLimit": self.gas_limit,
            "gasUsed": self.gas_used,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "contractAddress": self.contract_address,
            "logs": [log.as_dict() for log in self.logs],
            "error": self.error.as_dict() if self.error is not None else None,
        }


@dataclass
class Frame:
    """
    One message-call context. `address` owns the storage being touched,
    `code_address` is where the running code lives (they differ under a proxy).
    """

    ledger: "Ledger"
    address: str
    code_address: str
    sender: str
    origin: str
    meter: GasMeter
    static: bool = False
    depth: int = 0

    @property
    def storage(self) -> Dict[str, Any]:
        return self.ledger.accounts[self.address].storage

    def ensure_writable(self) -> None:
        if self.static:
            raise StaticCallViolation(self.address)


_Body = Callable[[GasMeter, str], Tuple[Any, Optional[str]]]


class Ledger:
    """
    Single-writer ledger: no two transactions ever interleave.
    """

    def __init__(
        self,
        *,
        chain_id: int = 31337,
        block_gas_limit: int = 30_000_000,
        genesis_timestamp: int = 1_700_000_000,
        block_time_sec: int = 12,
    ) -> None:
        self.chain_id = int(chain_id)
        self.block_gas_limit = int(block_gas_limit)
        self.block_time_sec = int(block_time_sec)
        self.block_number = 0
        self.timestamp = int(genesis_timestamp)

        self.accounts: Dict[str, Account] = {}
        self.nonces: Dict[str, int] = {}
        self.logs: List[EventLog] = []
        self.receipts: List[TxReceipt] = []

        self._pending_logs: Optional[List[EventLog]] = None

    @classmethod
    def from_settings(cls) -> "Ledger":
        s = get_settings()
        return cls(
            chain_id=s.CHAIN_ID,
            block_gas_limit=s.BLOCK_GAS_LIMIT,
            genesis_timestamp=s.GENESIS_TIMESTAMP,
            block_time_sec=s.BLOCK_TIME_SEC,
        )

    # ------------------------------------------------------------------ #
    # Public API: transactions
    # ------------------------------------------------------------------ #

    def transact(
        self,
        sender: str,
        to: str,
        fn: str,
        *args: Any,
        gas_limit: Optional[int] = None,
        dry_run: bool = False,
    ) -> TxReceipt:
        """
        Execute `to.fn(*args)` as `sender` in a new block.
        """
        target = to_address(to)

        def body(meter: GasMeter, origin: str) -> Tuple[Any, Optional[str]]:
            value = self._dispatch(
                sender=origin, to=target, fn=fn, args=args, meter=meter, static=False, origin=origin, depth=0
            )
            return value, None

        return self._run_tx(sender, target, fn, gas_limit, body, dry_run=dry_run)

    def deploy(
        self,
        sender: str,
        contract_cls: type,
        *ctor_args: Any,
        gas_limit: Optional[int] = None,
        dry_run: bool = False,
    ) -> TxReceipt:
        """
        Create a plain contract account running `contract_cls`.
        The new address is in `receipt.contract_address`.
        """

        def body(meter: GasMeter, origin: str) -> Tuple[Any, Optional[str]]:
            nonce = self.nonces[origin] - 1  # creation uses the pre-tx nonce
            address = self._derive_address(origin, nonce)
            self._install(origin, address, contract_cls, ctor_args, meter, origin, depth=0)
            return None, address

        return self._run_tx(sender, None, "constructor", gas_limit, body, dry_run=dry_run)

    def deploy_proxy(
        self,
        sender: str,
        implementation: str,
        init_fn: Optional[str] = None,
        *init_args: Any,
        gas_limit: Optional[int] = None,
        dry_run: bool = False,
    ) -> TxReceipt:
        """
        Create an ERC-1967 proxy for `implementation` and run the initializer
        through it in the same transaction.
        """
        impl = to_address(implementation)

        def body(meter: GasMeter, origin: str) -> Tuple[Any, Optional[str]]:
            nonce = self.nonces[origin] - 1
            address = self._derive_address(origin, nonce)
            self._install_proxy(origin, address, impl, init_fn, init_args, meter, origin, depth=0)
            return None, address

        return self._run_tx(sender, None, "constructor", gas_limit, body, dry_run=dry_run)

    def estimate_gas(self, sender: str, to: str, fn: str, *args: Any) -> int:
        return self.transact(sender, to, fn, *args, dry_run=True).gas_used

    def call(self, to: str, fn: str, *args: Any, sender: str = ZERO_ADDRESS) -> Any:
        """
        Read-only call against the latest committed state. Nothing is mined.
        """
        origin = to_address(sender)
        meter = GasMeter(self.block_gas_limit)
        return self._dispatch(
            sender=origin, to=to_address(to), fn=fn, args=args, meter=meter, static=True, origin=origin, depth=0
        )

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self.timestamp += int(seconds)
        return self.timestamp

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def is_contract(self, address: str) -> bool:
        return to_address(address) in self.accounts

    def code_of(self, address: str) -> type:
        account = self.accounts.get(address)
        if account is None:
            raise ContractNotFound(address)
        if account.is_proxy:
            impl = self.accounts.get(account.implementation or "")
            if impl is None:
                raise ContractNotFound(account.implementation)
            return get_contract_class(impl.code)
        return get_contract_class(account.code)

    def implementation_of(self, address: str) -> Optional[str]:
        account = self.accounts.get(to_address(address))
        return account.implementation if account is not None else None

    def nonce_of(self, address: str) -> int:
        return self.nonces.get(to_address(address), 0)

    def get_logs(
        self,
        *,
        address: Optional[str] = None,
        event: Optional[str] = None,
        from_block: int = 0,
    ) -> List[EventLog]:
        addr = to_address(address) if address else None
        return [
            log
            for log in self.logs
            if (addr is None or log.address == addr)
            and (event is None or log.event == event)
            and log.block_number >= from_block
        ]

    # ------------------------------------------------------------------ #
    # Hooks used by running contract code
    # ------------------------------------------------------------------ #

    def message_call(self, parent: Frame, target: str, fn: str, args: Tuple[Any, ...], *, static: bool) -> Any:
        parent.meter.charge(CALL_GAS)
        return self._dispatch(
            sender=parent.address,
            to=to_address(target),
            fn=fn,
            args=args,
            meter=parent.meter,
            static=static,
            origin=parent.origin,
            depth=parent.depth + 1,
        )

    def delegate_self_call(self, parent: Frame, fn: str, args: Tuple[Any, ...]) -> Any:
        return self._dispatch(
            sender=parent.sender,
            to=parent.address,
            fn=fn,
            args=args,
            meter=parent.meter,
            static=parent.static,
            origin=parent.origin,
            depth=parent.depth + 1,
        )

    def create_proxy(
        self,
        parent: Frame,
        implementation: str,
        init_fn: Optional[str],
        init_args: Tuple[Any, ...],
    ) -> str:
        parent.ensure_writable()
        creator = parent.address
        nonce = self.nonces.get(creator, 1)  # contract nonces start at 1
        self.nonces[creator] = nonce + 1
        address = self._derive_address(creator, nonce)
        self._install_proxy(
            creator, address, to_address(implementation), init_fn, init_args, parent.meter, parent.origin, parent.depth + 1
        )
        return address

    def upgrade_proxy(self, frame: Frame, new_implementation: str) -> None:
        """
        Point the proxy owning `frame` at new code. The new layout must extend
        the current one; slots it adds start at their defaults.
        """
        frame.ensure_writable()
        account = self.accounts[frame.address]
        if not account.is_proxy:
            raise UUPSUnauthorizedCallContext()

        new_impl = self.accounts.get(new_implementation)
        if new_impl is None or new_impl.is_proxy:
            raise ERC1967InvalidImplementation(new_implementation)

        old_cls = self.code_of(frame.address)
        new_cls = get_contract_class(new_impl.code)
        if not is_layout_compatible(old_cls.storage_layout(), new_cls.storage_layout()):
            raise StorageLayoutIncompatible(old_cls.CONTRACT_NAME, new_cls.CONTRACT_NAME)

        frame.meter.charge_sstore(False)
        account.implementation = new_implementation
        added = apply_layout_defaults(account.storage, new_cls.storage_layout())
        logger.debug("proxy %s -> %s (new slots: %s)", frame.address, new_implementation, added)

    def record_log(self, address: str, event: Event, args: Dict[str, Any]) -> None:
        if self._pending_logs is None:
            raise StaticCallViolation(address)
        self._pending_logs.append(
            EventLog(address=address, event=event.name, signature=event.signature, topic=event.topic, args=args)
        )

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def snapshot(self, *, chain: str, label: Optional[str] = None) -> LedgerSnapshotEntity:
        accounts = [
            AccountSnapshot(
                address=a.address,
                code=a.code,
                storage_json=json.dumps(a.storage, sort_keys=True),
                implementation=a.implementation,
            )
            for a in self.accounts.values()
        ]
        return LedgerSnapshotEntity(
            chain=chain,
            chain_id=self.chain_id,
            block_number=self.block_number,
            timestamp=self.timestamp,
            accounts=accounts,
            nonces=dict(self.nonces),
            label=label,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshotEntity,
        *,
        block_gas_limit: int = 30_000_000,
        block_time_sec: int = 12,
    ) -> "Ledger":
        ledger = cls(
            chain_id=snapshot.chain_id,
            block_gas_limit=block_gas_limit,
            genesis_timestamp=snapshot.timestamp,
            block_time_sec=block_time_sec,
        )
        ledger.block_number = snapshot.block_number
        ledger.nonces = dict(snapshot.nonces)

        for item in snapshot.accounts:
            ledger.accounts[item.address] = Account(
                address=item.address,
                code=item.code,
                storage=json.loads(item.storage_json),
                implementation=item.implementation,
            )

        # code may have gained slots since the snapshot was taken
        for account in ledger.accounts.values():
            apply_layout_defaults(account.storage, ledger.code_of(account.address).storage_layout())
        return ledger

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _run_tx(
        self,
        sender: str,
        to: Optional[str],
        fn: str,
        gas_limit: Optional[int],
        body: _Body,
        *,
        dry_run: bool,
    ) -> TxReceipt:
        origin = to_address(sender)
        limit = int(gas_limit) if gas_limit is not None else self.block_gas_limit
        if limit > self.block_gas_limit:
            raise ValueError(f"gas_limit {limit} exceeds block gas limit {self.block_gas_limit}")
        if self._pending_logs is not None:
            raise RuntimeError("Ledger is already executing a transaction")

        checkpoint = self._checkpoint()
        nonce = self.nonces.get(origin, 0)
        tx_hash = self._tx_hash(origin, nonce, to, fn)

        self.block_number += 1
        self.timestamp += self.block_time_sec
        self.nonces[origin] = nonce + 1

        meter = GasMeter(limit)
        self._pending_logs = []
        try:
            meter.charge(TX_BASE_GAS)
            return_value, created = body(meter, origin)
        except Exception as exc:
            self._pending_logs = None
            self._restore(checkpoint, keep_progress=not dry_run, origin=origin)
            if isinstance(exc, ContractRevert) and not dry_run:
                self.receipts.append(
                    TxReceipt(
                        tx_hash=tx_hash,
                        sender=origin,
                        to=to,
                        fn=fn,
                        status=0,
                        gas_limit=limit,
                        gas_used=limit if isinstance(exc, OutOfGas) else meter.used,
                        block_number=self.block_number,
                        timestamp=self.timestamp,
                        error=exc,
                    )
                )
                logger.info("tx %s reverted: %s (to=%s fn=%s)", tx_hash, exc, to, fn)
            raise

        logs = self._pending_logs
        self._pending_logs = None
        for i, log in enumerate(logs):
            log.log_index = i
            log.tx_hash = tx_hash
            log.block_number = self.block_number

        receipt = TxReceipt(
            tx_hash=tx_hash,
            sender=origin,
            to=to,
            fn=fn,
            status=1,
            gas_limit=limit,
            gas_used=meter.used,
            block_number=self.block_number,
            timestamp=self.timestamp,
            logs=logs,
            return_value=return_value,
            contract_address=created,
        )

        if dry_run:
            self._restore(checkpoint, keep_progress=False, origin=origin)
            return receipt

        self.logs.extend(logs)
        self.receipts.append(receipt)
        logger.debug("tx %s committed: to=%s fn=%s gas=%d logs=%d", tx_hash, to, fn, meter.used, len(logs))
        return receipt

    def _dispatch(
        self,
        *,
        sender: str,
        to: str,
        fn: str,
        args: Tuple[Any, ...],
        meter: GasMeter,
        static: bool,
        origin: str,
        depth: int,
    ) -> Any:
        if depth > MAX_CALL_DEPTH:
            raise OutOfGas(meter.limit, meter.used)
        account = self.accounts.get(to)
        if account is None:
            raise ContractNotFound(to)

        contract_cls = self.code_of(to)
        entry: AbiFunction = contract_cls.resolve_function(fn)
        call_args = contract_cls.coerce_args(entry, args)

        frame = Frame(
            ledger=self,
            address=to,
            code_address=account.implementation if account.is_proxy else to,
            sender=sender,
            origin=origin,
            meter=meter,
            static=static or entry.is_view,
            depth=depth,
        )
        instance: Contract = contract_cls(frame)
        return getattr(instance, entry.attr)(*call_args)

    def _install(
        self,
        deployer: str,
        address: str,
        contract_cls: type,
        ctor_args: Tuple[Any, ...],
        meter: GasMeter,
        origin: str,
        depth: int,
    ) -> None:
        if get_contract_class(contract_cls.CONTRACT_NAME) is not contract_cls:
            raise ValueError(f"{contract_cls.__name__} is not a registered contract")
        meter.charge(CREATE_GAS)

        account = Account(address=address, code=contract_cls.CONTRACT_NAME)
        apply_layout_defaults(account.storage, contract_cls.storage_layout())
        self.accounts[address] = account
        self.nonces.setdefault(address, 1)

        ctor = AbiFunction("constructor", tuple(getattr(contract_cls, "CONSTRUCTOR_INPUTS", ())), "nonpayable")
        args = contract_cls.coerce_args(ctor, ctor_args)
        frame = Frame(
            ledger=self, address=address, code_address=address, sender=deployer, origin=origin, meter=meter, depth=depth
        )
        contract_cls(frame).constructor(*args)

    def _install_proxy(
        self,
        deployer: str,
        address: str,
        implementation: str,
        init_fn: Optional[str],
        init_args: Tuple[Any, ...],
        meter: GasMeter,
        origin: str,
        depth: int,
    ) -> None:
        impl = self.accounts.get(implementation)
        if impl is None or impl.is_proxy:
            raise ERC1967InvalidImplementation(implementation)
        meter.charge(CREATE_GAS)

        account = Account(address=address, code=PROXY_CODE, implementation=implementation)
        apply_layout_defaults(account.storage, get_contract_class(impl.code).storage_layout())
        self.accounts[address] = account
        self.nonces.setdefault(address, 1)

        meter.charge_log(1)
        self.record_log(address, UPGRADED, UPGRADED.bind([implementation]))

        if init_fn:
            self._dispatch(
                sender=deployer,
                to=address,
                fn=init_fn,
                args=tuple(init_args),
                meter=meter,
                static=False,
                origin=origin,
                depth=depth + 1,
            )

    def _derive_address(self, deployer: str, nonce: int) -> str:
        payload = bytes.fromhex(deployer[2:]) + int(nonce).to_bytes(32, "big")
        raw = Web3.keccak(payload)[-20:]
        return Web3.to_checksum_address(Web3.to_hex(raw))

    def _tx_hash(self, sender: str, nonce: int, to: Optional[str], fn: str) -> str:
        payload = f"{self.chain_id}:{sender}:{nonce}:{to or ''}:{fn}:{self.block_number + 1}"
        return Web3.to_hex(Web3.keccak(text=payload))

    def _checkpoint(self) -> tuple:
        return (copy.deepcopy(self.accounts), dict(self.nonces), self.block_number, self.timestamp)

    def _restore(self, checkpoint: tuple, *, keep_progress: bool, origin: str) -> None:
        accounts, nonces, block_number, timestamp = checkpoint
        bumped_nonce = self.nonces.get(origin)
        self.accounts = accounts
        self.nonces = nonces
        if keep_progress:
            # a failed tx still occupies its block and consumes the sender's nonce
            self.nonces[origin] = bumped_nonce
        else:
            self.block_number = block_number
            self.timestamp = timestamp
