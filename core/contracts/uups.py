from __future__ import annotations

from typing import Any, Optional, Tuple

from core.contracts.base import Contract, external, view
from core.contracts.erc1967 import IMPLEMENTATION_SLOT, UPGRADED
from core.services.exceptions import (
    ContractRevert,
    ERC1967InvalidImplementation,
    OutOfGas,
    UUPSUnauthorizedCallContext,
    UUPSUnsupportedProxiableUUID,
)


class UUPSUpgradeable(Contract):
    """
    Upgrade logic that lives in the implementation, not in the proxy.

    `upgradeToAndCall` only works when executed through a proxy; the proxy is
    re-pointed at the new implementation and, optionally, a function of the
    new code is run in the same transaction. Subclasses decide who may upgrade
    by overriding `_authorize_upgrade`.
    """

    @view("proxiableUUID")
    def proxiable_uuid(self) -> str:
        self._not_delegated()
        return IMPLEMENTATION_SLOT

    @external("upgradeToAndCall", "address", "call")
    def upgrade_to_and_call(self, new_implementation: str, data: Optional[Tuple[str, Tuple[Any, ...]]]) -> None:
        self._only_proxy()
        self._authorize_upgrade(new_implementation)
        self._upgrade_to_and_call_uups(new_implementation, data)

    def _authorize_upgrade(self, new_implementation: str) -> None:
        raise NotImplementedError

    def _only_proxy(self) -> None:
        if self.address == self.code_address:
            raise UUPSUnauthorizedCallContext()

    def _not_delegated(self) -> None:
        if self.address != self.code_address:
            raise UUPSUnauthorizedCallContext()

    def _upgrade_to_and_call_uups(self, new_implementation: str, data: Optional[Tuple[str, Tuple[Any, ...]]]) -> None:
        try:
            slot = self.static_call(new_implementation, "proxiableUUID")
        except OutOfGas:
            raise
        except ContractRevert as exc:
            raise ERC1967InvalidImplementation(new_implementation) from exc
        if slot != IMPLEMENTATION_SLOT:
            raise UUPSUnsupportedProxiableUUID(slot)

        self._frame.ledger.upgrade_proxy(self._frame, new_implementation)
        self.emit(UPGRADED, new_implementation)

        if data is not None:
            fn, args = data
            self.self_call(fn, *args)
