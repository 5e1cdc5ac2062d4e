from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from core.domain.entities.factory_entities import WrapperFactoryEntity
from core.domain.enums.factory_enums import FactoryStatus


class WrapperFactoryRepository(ABC):
    @abstractmethod
    def get_latest(self, *, chain: str) -> Optional[WrapperFactoryEntity]:
        raise NotImplementedError

    @abstractmethod
    def get_active(self, *, chain: str) -> Optional[WrapperFactoryEntity]:
        raise NotImplementedError

    @abstractmethod
    def get_by_address(self, *, chain: str, address: str) -> Optional[WrapperFactoryEntity]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, entity: WrapperFactoryEntity) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_all_status(self, *, chain: str, status: FactoryStatus) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, *, chain: str, limit: int = 50) -> Sequence[WrapperFactoryEntity]:
        raise NotImplementedError
