from __future__ import annotations

from enum import StrEnum


class FactoryStatus(StrEnum):
    """
    Status values for WrapperFactory deployment records stored in Mongo.

    Rules:
    - ACTIVE: the factory new wrapped tokens are created through.
    - ARCHIVED_CAN_CREATE_NEW: a new factory may be deployed while the latest record is in this status.
    """

    ACTIVE = "ACTIVE"
    ARCHIVED_CAN_CREATE_NEW = "ARCHIVED_CAN_CREATE_NEW"
