# core/services/utils.py
from typing import Any
from collections.abc import Mapping
from enum import Enum
from hexbytes import HexBytes
from web3 import Web3

from core.services.exceptions import ContractRevert

# JavaScript clients lose precision above 2**53
_MAX_SAFE_INT = 2**53 - 1


def to_json_safe(obj: Any, *, big_ints_as_str: bool = False) -> Any:
    """
    Recursively convert ledger / HexBytes-heavy structures into plain JSON-serializable primitives.

    - HexBytes -> "0x..." str
    - bytes    -> "0x..." str
    - Enum     -> its value
    - ContractRevert -> {"error": name, "args": [...]}
    - Mapping  -> {k: to_json_safe(v)}
    - list/tuple/set -> [to_json_safe(v), ...]
    - ints above 2**53 -> decimal str, only when big_ints_as_str is set
    - everything else -> unchanged if primitive, else str(obj)
    """
    if isinstance(obj, HexBytes):
        return Web3.to_hex(obj)

    if isinstance(obj, (bytes, bytearray)):
        return "0x" + obj.hex()

    if isinstance(obj, Enum):
        return to_json_safe(obj.value, big_ints_as_str=big_ints_as_str)

    if isinstance(obj, bool) or obj is None or isinstance(obj, (str, float)):
        return obj

    if isinstance(obj, int):
        if big_ints_as_str and abs(obj) > _MAX_SAFE_INT:
            return str(obj)
        return obj

    if isinstance(obj, ContractRevert):
        return obj.as_dict()

    if isinstance(obj, Mapping):
        return {str(k): to_json_safe(v, big_ints_as_str=big_ints_as_str) for (k, v) in obj.items()}

    if isinstance(obj, (list, tuple, set)):
        return [to_json_safe(v, big_ints_as_str=big_ints_as_str) for v in obj]

    return str(obj)
