from __future__ import annotations

from core.contracts.base import Contract, Event, external, view
from core.services.exceptions import OwnableInvalidOwner, OwnableUnauthorizedAccount
from core.services.normalize import ZERO_ADDRESS
from core.services.storage import StorageSlot

OWNERSHIP_TRANSFERRED = Event.parse(
    "OwnershipTransferred(address indexed previousOwner, address indexed newOwner)"
)


class Ownable(Contract):
    STORAGE_LAYOUT = (StorageSlot("_owner", ZERO_ADDRESS),)

    def _ownable_init(self, initial_owner: str) -> None:
        if initial_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(ZERO_ADDRESS)
        self._transfer_ownership(initial_owner)

    @view("owner")
    def owner(self) -> str:
        return self.sload("_owner")

    @external("transferOwnership", "address")
    def transfer_ownership(self, new_owner: str) -> None:
        self._check_owner()
        if new_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(ZERO_ADDRESS)
        self._transfer_ownership(new_owner)

    @external("renounceOwnership")
    def renounce_ownership(self) -> None:
        self._check_owner()
        self._transfer_ownership(ZERO_ADDRESS)

    def _check_owner(self) -> None:
        if self.owner() != self.msg_sender:
            raise OwnableUnauthorizedAccount(self.msg_sender)

    def _transfer_ownership(self, new_owner: str) -> None:
        previous = self.sload("_owner")
        self.sstore("_owner", new_owner)
        self.emit(OWNERSHIP_TRANSFERRED, previous, new_owner)
