from __future__ import annotations

import functools
from typing import Any, Callable

from core.contracts.base import Contract
from core.services.exceptions import ReentrancyGuardReentrantCall
from core.services.storage import StorageSlot

NOT_ENTERED = 1
ENTERED = 2


class ReentrancyGuard(Contract):
    STORAGE_LAYOUT = (StorageSlot("_reentrancy_status", NOT_ENTERED),)


def non_reentrant(fn: Callable) -> Callable:
    """
    Reject any call that re-enters a guarded function of the same account
    before the first one returned.
    """

    @functools.wraps(fn)
    def wrapper(self: ReentrancyGuard, *args: Any) -> Any:
        if self.sload("_reentrancy_status") == ENTERED:
            raise ReentrancyGuardReentrantCall()
        self.sstore("_reentrancy_status", ENTERED)
        result = fn(self, *args)
        # a raise leaves ENTERED behind, but the revert discards it with everything else
        self.sstore("_reentrancy_status", NOT_ENTERED)
        return result

    return wrapper
