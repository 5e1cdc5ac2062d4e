from __future__ import annotations

from core.contracts.base import Contract, Event, external, view
from core.domain.enums.role_enums import DEFAULT_ADMIN_ROLE
from core.services.exceptions import AccessControlBadConfirmation, AccessControlUnauthorizedAccount
from core.services.storage import StorageSlot

ROLE_ADMIN_CHANGED = Event.parse(
    "RoleAdminChanged(bytes32 indexed role, bytes32 indexed previousAdminRole, bytes32 indexed newAdminRole)"
)
ROLE_GRANTED = Event.parse("RoleGranted(bytes32 indexed role, address indexed account, address indexed sender)")
ROLE_REVOKED = Event.parse("RoleRevoked(bytes32 indexed role, address indexed account, address indexed sender)")


class AccessControl(Contract):
    """
    Role-based access control.

    Each role has an admin role; only holders of the admin role may grant or
    revoke it. Every role's admin defaults to DEFAULT_ADMIN_ROLE (bytes32 zero).
    """

    STORAGE_LAYOUT = (
        StorageSlot("_role_members", {}),
        StorageSlot("_role_admins", {}),
    )

    # ---------------- views ----------------

    @view("hasRole", "bytes32", "address")
    def has_role(self, role: str, account: str) -> bool:
        return bool(self.mload("_role_members", (role, account), False))

    @view("getRoleAdmin", "bytes32")
    def get_role_admin(self, role: str) -> str:
        return self.mload("_role_admins", role, DEFAULT_ADMIN_ROLE)

    # ---------------- external ----------------

    @external("grantRole", "bytes32", "address")
    def grant_role(self, role: str, account: str) -> None:
        self._check_role(self.get_role_admin(role))
        self._grant_role(role, account)

    @external("revokeRole", "bytes32", "address")
    def revoke_role(self, role: str, account: str) -> None:
        self._check_role(self.get_role_admin(role))
        self._revoke_role(role, account)

    @external("renounceRole", "bytes32", "address")
    def renounce_role(self, role: str, caller_confirmation: str) -> None:
        if caller_confirmation != self.msg_sender:
            raise AccessControlBadConfirmation()
        self._revoke_role(role, caller_confirmation)

    # ---------------- internal ----------------

    def _check_role(self, role: str, account: str | None = None) -> None:
        account = account or self.msg_sender
        if not self.has_role(role, account):
            raise AccessControlUnauthorizedAccount(account, role)

    def _set_role_admin(self, role: str, admin_role: str) -> None:
        previous = self.get_role_admin(role)
        self.mstore("_role_admins", role, admin_role)
        self.emit(ROLE_ADMIN_CHANGED, role, previous, admin_role)

    def _grant_role(self, role: str, account: str) -> bool:
        if self.has_role(role, account):
            return False
        self.mstore("_role_members", (role, account), True)
        self.emit(ROLE_GRANTED, role, account, self.msg_sender)
        return True

    def _revoke_role(self, role: str, account: str) -> bool:
        if not self.has_role(role, account):
            return False
        self.mstore("_role_members", (role, account), False)
        self.emit(ROLE_REVOKED, role, account, self.msg_sender)
        return True
