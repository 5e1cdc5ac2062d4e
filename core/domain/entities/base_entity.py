# core/domain/entities/base_entity.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict

E = TypeVar("E", bound="MongoEntity")


def _stamp() -> Tuple[int, str]:
    """
    Current wall-clock time as (epoch milliseconds, ISO-8601 UTC ending in 'Z').
    """
    now = datetime.now(timezone.utc)
    return int(now.timestamp() * 1000), now.isoformat().replace("+00:00", "Z")


class MongoEntity(BaseModel):
    """
    Base entity for ledger records kept in Mongo.

    Conventions:
    - MongoDB `_id` is mapped to `id` as a string.
    - Insert time is stored twice, in milliseconds and ISO-8601 (UTC).
      Ledger records are append-only: nothing is updated after insert except
      factory status flips, which the repository does in place.
    - `schema_version` tags every document. Schemas only ever gain fields,
      so an older document still validates: missing fields take their defaults.
    - Extra fields are allowed to keep forward compatibility.
    """

    SCHEMA_VERSION: ClassVar[int] = 1

    id: Optional[str] = None  # maps _id
    schema_version: int = 1

    created_at: Optional[int] = None
    created_at_iso: Optional[str] = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="allow",
        use_enum_values=True,
    )

    def __init__(self, **data: Any) -> None:
        data.setdefault("schema_version", type(self).SCHEMA_VERSION)
        super().__init__(**data)

    @classmethod
    def from_mongo(cls: Type[E], doc: Optional[dict[str, Any]]) -> Optional[E]:
        """
        Build an entity from a raw MongoDB document (None stays None).
        """
        if not doc:
            return None

        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))

        # documents written before schema tagging are version 1
        data.setdefault("schema_version", 1)
        return cls.model_validate(data)

    def to_mongo(self) -> dict[str, Any]:
        """
        MongoDB-ready dict: `id` becomes `_id` when set, None fields are dropped.
        """
        data = self.model_dump(mode="python", exclude_none=True)
        if "id" in data:
            data["_id"] = data.pop("id")
        return data

    def touch_for_insert(self: E) -> E:
        if self.created_at is None:
            self.created_at, self.created_at_iso = _stamp()
        return self
