from __future__ import annotations

import functools
from typing import Any, Callable

from core.contracts.base import Contract, Event
from core.services.exceptions import InvalidInitialization, NotInitializing
from core.services.storage import StorageSlot

MAX_UINT64 = 2**64 - 1

INITIALIZED = Event.parse("Initialized(uint64 version)")


class Initializable(Contract):
    """
    One-shot initialization for contracts that run behind a proxy.

    A proxy has no constructor of its own, so setup happens in an `initialize`
    function guarded by `@initializer`. Implementations call
    `_disable_initializers()` from their constructor so the bare logic account
    can never be initialized by anyone.
    """

    STORAGE_LAYOUT = (
        StorageSlot("_initialized", 0),
        StorageSlot("_initializing", False),
    )

    def _check_initializing(self) -> None:
        if not self.sload("_initializing"):
            raise NotInitializing()

    def _disable_initializers(self) -> None:
        if self.sload("_initializing"):
            raise InvalidInitialization()
        if self.sload("_initialized") != MAX_UINT64:
            self.sstore("_initialized", MAX_UINT64)
            self.emit(INITIALIZED, MAX_UINT64)

    def _get_initialized_version(self) -> int:
        return self.sload("_initialized")

    def _is_initializing(self) -> bool:
        return bool(self.sload("_initializing"))


def reinitializer(version: int) -> Callable:
    """
    Allow the wrapped function to run once, and only when the contract has
    not reached `version` yet.
    """

    def deco(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self: Initializable, *args: Any) -> Any:
            if self.sload("_initializing") or self.sload("_initialized") >= version:
                raise InvalidInitialization()
            self.sstore("_initialized", version)
            self.sstore("_initializing", True)
            result = fn(self, *args)
            self.sstore("_initializing", False)
            self.emit(INITIALIZED, version)
            return result

        return wrapper

    return deco


initializer = reinitializer(1)
