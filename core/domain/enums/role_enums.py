from __future__ import annotations

from enum import StrEnum

from web3 import Web3

from core.services.normalize import ZERO_BYTES32, to_bytes32

DEFAULT_ADMIN_ROLE = ZERO_BYTES32


def role_id(name: str) -> str:
    """
    bytes32 role identifier: keccak256 of the role name, 0x-prefixed lowercase hex.
    """
    return Web3.to_hex(Web3.keccak(text=name))


class Role(StrEnum):
    """
    The only capability tags the WrapperFactory accepts.

    ADMINISTRATOR administers itself and the other two roles.
    """

    ADMINISTRATOR = "ADMINISTRATOR_ROLE"
    OPERATOR = "OPERATOR_ROLE"
    TREASURER = "TREASURER_ROLE"

    @property
    def id(self) -> str:
        return role_id(self.value)

    @classmethod
    def from_id(cls, value: str) -> "Role":
        rid = to_bytes32(value)
        for role in cls:
            if role.id == rid:
                return role
        raise ValueError(f"Unknown role id: {value}")

    @classmethod
    def resolve(cls, value: str) -> str:
        """
        Accept a role name ("OPERATOR" / "OPERATOR_ROLE") or a bytes32 id and
        return the bytes32 id. Unknown names are hashed as-is, so callers can
        still submit (and get rejected for) arbitrary tags.
        """
        v = (value or "").strip()
        if v.lower().startswith("0x"):
            return to_bytes32(v)
        name = v.upper()
        for role in cls:
            if name in (role.name, role.value):
                return role.id
        return role_id(v)
