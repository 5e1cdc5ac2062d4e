"""
Append-only storage layouts.

A contract's persistent state is a flat table of named slots. Each contract class
declares the slots it adds in `STORAGE_LAYOUT`; the full layout is the
concatenation along the class hierarchy, most-base first. New code may only add
slots at the end, which keeps older snapshots and proxies readable after an
upgrade: slots that did not exist yet simply read their declared default.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, MutableMapping, Sequence

from core.services.normalize import ZERO_ADDRESS


@dataclass(frozen=True)
class StorageSlot:
    name: str
    default: Any = None

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)


def layout_names(layout: Iterable[StorageSlot]) -> tuple[str, ...]:
    return tuple(slot.name for slot in layout)


def is_layout_compatible(old: Sequence[StorageSlot], new: Sequence[StorageSlot]) -> bool:
    """
    True when `new` keeps every slot of `old` at the same position.
    """
    old_names = layout_names(old)
    new_names = layout_names(new)
    return new_names[: len(old_names)] == old_names


def apply_layout_defaults(storage: MutableMapping[str, Any], layout: Iterable[StorageSlot]) -> list[str]:
    """
    Fill in the default of every slot missing from `storage`.

    Returns the names that were added.
    """
    added: list[str] = []
    for slot in layout:
        if slot.name not in storage:
            storage[slot.name] = slot.default_value()
            added.append(slot.name)
    return added


def is_empty_value(value: Any) -> bool:
    return value is None or value in (0, "", ZERO_ADDRESS) or value == {} or value == []
