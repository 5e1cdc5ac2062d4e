"""
Contract substrate for the in-process ledger.

A contract is a Python class whose externally callable surface is declared with
`@external(...)` / `@view(...)`, each carrying the ABI name and argument types.
Persistent state is only reachable through `sload`/`sstore` (whole slots) and
`mload`/`mstore` (mapping entries), which is where gas is charged and where
static-call and rollback guarantees are enforced by the ledger.
"""

from __future__ import annotations

import copy
import inspect
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Optional, Sequence, Tuple

from web3 import Web3

from core.services.exceptions import FunctionNotFound, InvalidArguments
from core.services.gas_meter import SLOAD_GAS
from core.services.normalize import to_address, to_bytes32
from core.services.storage import StorageSlot, is_empty_value

if TYPE_CHECKING:  # pragma: no cover
    from core.services.ledger import Frame


# ---------------------------------------------------------------------------
# ABI values
# ---------------------------------------------------------------------------

_UINT_RE = re.compile(r"^uint(\d*)$")


def coerce_abi_value(abi_type: str, value: Any) -> Any:
    """
    Validate and normalize one argument according to its ABI type.

    Raises ValueError on mismatch.
    """
    if abi_type == "address":
        return to_address(value)

    m = _UINT_RE.match(abi_type)
    if m:
        bits = int(m.group(1) or 256)
        if isinstance(value, bool):
            raise ValueError("uint cannot be a bool")
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int):
            raise ValueError(f"expected integer, got {type(value).__name__}")
        if value < 0 or value >= 2**bits:
            raise ValueError(f"{abi_type} out of range: {value}")
        return value

    if abi_type == "bytes32":
        return to_bytes32(value)

    if abi_type == "string":
        if not isinstance(value, str):
            raise ValueError(f"expected string, got {type(value).__name__}")
        return value

    if abi_type == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"expected bool, got {type(value).__name__}")
        return value

    if abi_type == "call":
        # encoded follow-up call: (function name, [args]) or nothing
        if value is None or value == "" or value == () or value == []:
            return None
        if isinstance(value, (list, tuple)) and len(value) == 2 and isinstance(value[0], str):
            return (value[0], tuple(value[1] or ()))
        raise ValueError("expected (function, args) pair")

    raise ValueError(f"unsupported ABI type: {abi_type}")


def storage_key(key: Any) -> str:
    if isinstance(key, tuple):
        return "|".join(str(k) for k in key)
    return str(key)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventParam:
    name: str
    type: str
    indexed: bool = False


@dataclass(frozen=True)
class Event:
    name: str
    params: Tuple[EventParam, ...]

    @classmethod
    def parse(cls, declaration: str) -> "Event":
        """
        Build an event from a Solidity-style declaration, e.g.
        `Transfer(address indexed from, address indexed to, uint256 value)`.
        """
        name, _, rest = declaration.partition("(")
        body = rest.rstrip(")").strip()
        params = []
        for raw in filter(None, (p.strip() for p in body.split(","))):
            parts = raw.split()
            indexed = "indexed" in parts
            parts = [p for p in parts if p != "indexed"]
            if len(parts) != 2:
                raise ValueError(f"Invalid event parameter declaration: {raw!r}")
            params.append(EventParam(name=parts[1], type=parts[0], indexed=indexed))
        return cls(name=name.strip(), params=tuple(params))

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.type for p in self.params)})"

    @property
    def topic(self) -> str:
        return Web3.to_hex(Web3.keccak(text=self.signature))

    def bind(self, values: Sequence[Any]) -> Dict[str, Any]:
        if len(values) != len(self.params):
            raise ValueError(f"{self.signature} expects {len(self.params)} values, got {len(values)}")
        return {p.name: v for p, v in zip(self.params, values)}


# ---------------------------------------------------------------------------
# Function declarations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: Tuple[str, ...]
    mutability: str
    attr: str = ""

    @property
    def is_view(self) -> bool:
        return self.mutability == "view"


def _declare(mutability: str, abi_name: str, arg_types: Sequence[str]) -> Callable:
    def deco(fn: Callable) -> Callable:
        fn.__abi__ = AbiFunction(name=abi_name, inputs=tuple(arg_types), mutability=mutability)
        return fn

    return deco


def external(abi_name: str, *arg_types: str) -> Callable:
    """Mark a method as a state-changing external function."""
    return _declare("nonpayable", abi_name, arg_types)


def view(abi_name: str, *arg_types: str) -> Callable:
    """Mark a method as a read-only external function."""
    return _declare("view", abi_name, arg_types)


# ---------------------------------------------------------------------------
# Registry (contract name -> code), needed to rebuild ledgers from snapshots
# ---------------------------------------------------------------------------

CONTRACT_REGISTRY: Dict[str, type] = {}


def register_contract(cls: type) -> type:
    name = cls.CONTRACT_NAME or cls.__name__
    current = CONTRACT_REGISTRY.get(name)
    if current is not None and current is not cls:
        same = (current.__module__, current.__qualname__) == (cls.__module__, cls.__qualname__)
        if not same:
            raise ValueError(f"Contract name already registered: {name}")
    cls.CONTRACT_NAME = name
    CONTRACT_REGISTRY[name] = cls
    return cls


def get_contract_class(name: str) -> type:
    try:
        return CONTRACT_REGISTRY[name]
    except KeyError:
        raise ValueError(f"Unknown contract code: {name}") from None


# ---------------------------------------------------------------------------
# Base contract
# ---------------------------------------------------------------------------

class Contract:
    CONTRACT_NAME: ClassVar[str] = ""
    STORAGE_LAYOUT: ClassVar[Tuple[StorageSlot, ...]] = ()

    _abi: ClassVar[Dict[str, AbiFunction]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        abi: Dict[str, AbiFunction] = {}
        for klass in reversed(cls.__mro__):
            for attr, member in vars(klass).items():
                meta = getattr(member, "__abi__", None)
                if isinstance(meta, AbiFunction):
                    abi[meta.name] = AbiFunction(meta.name, meta.inputs, meta.mutability, attr)
        cls._abi = abi

    def __init__(self, frame: "Frame") -> None:
        self._frame = frame

    # ---------------- class-level introspection ----------------

    @classmethod
    def storage_layout(cls) -> Tuple[StorageSlot, ...]:
        slots: list[StorageSlot] = []
        seen: set[str] = set()
        for klass in reversed(cls.__mro__):
            for slot in vars(klass).get("STORAGE_LAYOUT", ()):
                if slot.name in seen:
                    raise TypeError(f"{cls.__name__}: storage slot declared twice: {slot.name}")
                seen.add(slot.name)
                slots.append(slot)
        return tuple(slots)

    @classmethod
    def resolve_function(cls, fn_name: str) -> AbiFunction:
        entry = cls._abi.get(fn_name)
        if entry is None:
            raise FunctionNotFound(cls.CONTRACT_NAME or cls.__name__, fn_name)
        return entry

    @classmethod
    def coerce_args(cls, entry: AbiFunction, args: Sequence[Any]) -> Tuple[Any, ...]:
        if len(args) != len(entry.inputs):
            raise InvalidArguments(entry.name, f"expected {len(entry.inputs)} arguments, got {len(args)}")
        out = []
        for i, (abi_type, value) in enumerate(zip(entry.inputs, args)):
            try:
                out.append(coerce_abi_value(abi_type, value))
            except ValueError as exc:
                raise InvalidArguments(entry.name, f"argument {i} ({abi_type}): {exc}") from exc
        return tuple(out)

    @classmethod
    def abi(cls) -> list[dict]:
        """
        ABI-style description of the external surface (same shape as a solc ABI).
        """
        out = []
        for entry in sorted(cls._abi.values(), key=lambda e: e.name):
            fn = getattr(cls, entry.attr)
            params = [p for p in inspect.signature(fn).parameters if p != "self"]
            out.append(
                {
                    "name": entry.name,
                    "inputs": [
                        {"name": params[i] if i < len(params) else "", "type": t}
                        for i, t in enumerate(entry.inputs)
                    ],
                    "stateMutability": entry.mutability,
                    "type": "function",
                }
            )
        return out

    # ---------------- execution environment ----------------

    @property
    def address(self) -> str:
        return self._frame.address

    @property
    def code_address(self) -> str:
        return self._frame.code_address

    @property
    def msg_sender(self) -> str:
        return self._frame.sender

    @property
    def block_timestamp(self) -> int:
        return self._frame.ledger.timestamp

    @property
    def block_number(self) -> int:
        return self._frame.ledger.block_number

    @property
    def chain_id(self) -> int:
        return self._frame.ledger.chain_id

    def constructor(self, *args: Any) -> None:
        """Runs once, at deployment, against the new account's storage."""
        if args:
            raise InvalidArguments("constructor", f"{type(self).__name__} takes no constructor arguments")

    # ---------------- storage ----------------

    @property
    def _storage(self) -> Dict[str, Any]:
        return self._frame.storage

    def sload(self, name: str) -> Any:
        self._frame.meter.charge(SLOAD_GAS)
        return copy.deepcopy(self._storage[name])

    def sstore(self, name: str, value: Any) -> None:
        self._frame.ensure_writable()
        self._frame.meter.charge_sstore(is_empty_value(self._storage.get(name)))
        self._storage[name] = value

    def mload(self, name: str, key: Any, default: Any = 0) -> Any:
        self._frame.meter.charge(SLOAD_GAS)
        value = self._storage[name].get(storage_key(key), default)
        return copy.deepcopy(value)

    def mstore(self, name: str, key: Any, value: Any) -> None:
        self._frame.ensure_writable()
        table = self._storage[name]
        k = storage_key(key)
        self._frame.meter.charge_sstore(is_empty_value(table.get(k)))
        # zero values are not materialized, mirroring unset mapping slots
        if is_empty_value(value):
            table.pop(k, None)
        else:
            table[k] = value

    # ---------------- events & calls ----------------

    def emit(self, event: Event, *values: Any) -> None:
        self._frame.ensure_writable()
        self._frame.meter.charge_log(len(values))
        self._frame.ledger.record_log(self.address, event, event.bind(values))

    def call(self, target: str, fn: str, *args: Any) -> Any:
        return self._frame.ledger.message_call(self._frame, target, fn, args, static=self._frame.static)

    def static_call(self, target: str, fn: str, *args: Any) -> Any:
        return self._frame.ledger.message_call(self._frame, target, fn, args, static=True)

    def self_call(self, fn: str, *args: Any) -> Any:
        """Re-enter this account's current code keeping msg.sender (delegatecall to self)."""
        return self._frame.ledger.delegate_self_call(self._frame, fn, args)

    def create_proxy(self, implementation: str, init_fn: Optional[str], *init_args: Any) -> str:
        return self._frame.ledger.create_proxy(self._frame, implementation, init_fn, init_args)
