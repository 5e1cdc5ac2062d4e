from __future__ import annotations

from typing import Any

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = "0x" + "00" * 32

MAX_UINT256 = 2**256 - 1


def _norm(a: str | None) -> str:
    return (a or "").strip()


def _norm_lower(a: str | None) -> str:
    return _norm(a).lower()


def to_address(value: Any) -> str:
    """
    Normalize an address-like value into its EIP-55 checksum form.

    Raises ValueError for anything that is not a 20-byte hex address.
    """
    if isinstance(value, (bytes, bytearray)):
        value = Web3.to_hex(value)
    addr = _norm(value if isinstance(value, str) else None)
    if not Web3.is_address(addr):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(addr)


def is_zero_address(addr: str | None) -> bool:
    return not _norm(addr) or _norm_lower(addr) == ZERO_ADDRESS


def _require_nonzero(name: str, addr: str | None) -> str:
    addr = _norm(addr)
    if is_zero_address(addr):
        raise ValueError(f"{name} must not be zero address.")
    return to_address(addr)


def to_bytes32(value: Any) -> str:
    """
    Normalize bytes32 values (role ids, signature r/s) to 0x-prefixed lowercase hex.
    Ints are left-padded to 32 bytes.
    """
    if isinstance(value, bool):
        raise ValueError("bytes32 cannot be a bool")
    if isinstance(value, int):
        if value < 0 or value > MAX_UINT256:
            raise ValueError("bytes32 integer out of range")
        return "0x" + value.to_bytes(32, "big").hex()
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        s = _norm_lower(value)
        if s.startswith("0x"):
            s = s[2:]
        try:
            raw = bytes.fromhex(s)
        except ValueError as exc:
            raise ValueError(f"Invalid bytes32 hex: {value!r}") from exc
    else:
        raise ValueError(f"Invalid bytes32 value: {value!r}")
    if len(raw) != 32:
        raise ValueError(f"bytes32 must be exactly 32 bytes, got {len(raw)}")
    return "0x" + raw.hex()
