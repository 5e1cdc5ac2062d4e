from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from adapters.chain.wrapper_factory import WrapperFactoryAdapter
from adapters.external.database.wrapper_factory_repository_mongodb import WrapperFactoryRepositoryMongoDB
from config import get_settings
from core.contracts.base import get_contract_class
from core.contracts.wrapper_erc20 import WrapperERC20
from core.contracts.wrapper_factory import WrapperFactory
from core.domain.entities.factory_entities import WrapperFactoryEntity
from core.domain.enums.factory_enums import FactoryStatus
from core.domain.enums.tx_enums import GasStrategy
from core.domain.repositories.wrapper_factory_repository_interface import WrapperFactoryRepository
from core.services.ledger import Ledger
from core.services.ledger_cache import get_ledger
from core.services.normalize import _require_nonzero, to_address
from core.services.tx_service import TxService

logger = logging.getLogger(__name__)

UPGRADEABLE_CONTRACTS = ("WrapperFactory", "WrapperERC20")


@dataclass
class AdminWrapperFactoryUseCase:
    ledger: Ledger
    txs: TxService
    factory_repo: WrapperFactoryRepository
    chain: str

    @classmethod
    def from_settings(cls) -> "AdminWrapperFactoryUseCase":
        s = get_settings()
        ledger = get_ledger()
        factory_repo = WrapperFactoryRepositoryMongoDB()
        try:
            factory_repo.ensure_indexes()
        except PyMongoError as exc:
            logger.warning("wrapper_factories: ensure_indexes failed: %s", exc)

        return cls(
            ledger=ledger,
            txs=TxService(ledger, chain=s.CHAIN_NAME),
            factory_repo=factory_repo,
            chain=s.CHAIN_NAME,
        )

    def _ensure_can_create(self, latest_status: FactoryStatus | None) -> None:
        if latest_status is None:
            return
        if latest_status == FactoryStatus.ARCHIVED_CAN_CREATE_NEW:
            return
        raise ValueError("A factory already exists and does not allow creating a new one.")

    # ---------------- deployments ----------------

    def deploy_implementation(
        self,
        *,
        deployer: str,
        contract: str,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> dict:
        """
        Deploy a bare implementation (its initializers are disabled) that
        proxies can later be pointed at.
        """
        if contract not in UPGRADEABLE_CONTRACTS:
            raise ValueError(f"contract must be one of {', '.join(UPGRADEABLE_CONTRACTS)}")
        res = self.txs.deploy(to_address(deployer), get_contract_class(contract), gas_strategy=gas_strategy)
        res["result"] = {
            "contract": contract,
            "address": res["result"]["contract_address"],
        }
        return res

    def create_wrapper_factory(
        self,
        *,
        deployer: str,
        administrator: str,
        operator: str,
        treasurer: str,
        fee_receiver: str,
        initial_fee: int,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> dict:
        """
        Deploy the WrapperERC20 implementation, the WrapperFactory
        implementation and an initialized factory proxy, point the factory at
        the wrapper implementation, then record the proxy as the ACTIVE factory
        (archiving the previous one).
        """
        latest = self.factory_repo.get_latest(chain=self.chain)
        self._ensure_can_create(latest.status if latest else None)

        deployer = to_address(deployer)
        administrator = _require_nonzero("administrator", administrator)

        wrapper_impl = self.txs.deploy(deployer, WrapperERC20, gas_strategy=gas_strategy)
        factory_impl = self.txs.deploy(deployer, WrapperFactory, gas_strategy=gas_strategy)
        wrapper_impl_addr = wrapper_impl["result"]["contract_address"]
        factory_impl_addr = factory_impl["result"]["contract_address"]

        res = self.txs.deploy_proxy(
            deployer,
            factory_impl_addr,
            "initialize",
            (administrator, to_address(operator), to_address(treasurer), to_address(fee_receiver), int(initial_fee)),
            gas_strategy=gas_strategy,
        )
        addr = (res.get("result") or {}).get("contract_address")
        if not addr:
            raise RuntimeError("Deploy succeeded but contract_address is missing.")

        adapter = WrapperFactoryAdapter(self.ledger, addr)
        set_impl = self.txs.send(administrator, adapter.fn_set_implementation(wrapper_impl_addr), gas_strategy=gas_strategy)

        self.factory_repo.set_all_status(chain=self.chain, status=FactoryStatus.ARCHIVED_CAN_CREATE_NEW)
        ent = WrapperFactoryEntity(
            chain=self.chain,
            address=addr,
            status=FactoryStatus.ACTIVE,
            tx_hash=res.get("tx_hash"),
            factory_implementation=factory_impl_addr,
            wrapper_implementation=wrapper_impl_addr,
            deployer=deployer,
            administrator=administrator,
            operator=to_address(operator),
            treasurer=to_address(treasurer),
            fee_receiver=to_address(fee_receiver),
            initial_fee=int(initial_fee),
        )
        self.factory_repo.insert(ent)

        active = self.factory_repo.get_active(chain=self.chain)
        if not active or active.address != ent.address:
            raise RuntimeError("Factory deployed but failed to persist as ACTIVE in MongoDB.")

        logger.info("WrapperFactory %s deployed on %s (impl=%s)", addr, self.chain, factory_impl_addr)
        res["result"] = {
            "chain": ent.chain,
            "address": ent.address,
            "status": ent.status,
            "factory_implementation": factory_impl_addr,
            "wrapper_implementation": wrapper_impl_addr,
            "created_at": ent.created_at_iso,
            "txs": {
                "wrapper_implementation": wrapper_impl["tx_hash"],
                "factory_implementation": factory_impl["tx_hash"],
                "set_implementation": set_impl["tx_hash"],
            },
        }
        return res

    def upgrade_factory(
        self,
        *,
        sender: str,
        factory: str,
        new_implementation: str,
        call: Optional[Any] = None,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> dict:
        adapter = WrapperFactoryAdapter(self.ledger, factory)
        res = self.txs.send(to_address(sender), adapter.fn_upgrade_to(new_implementation, call), gas_strategy=gas_strategy)
        res["result"] = {
            "factory": adapter.address,
            "implementation": self.ledger.implementation_of(adapter.address),
        }
        return res

    # ---------------- records ----------------

    def get_active(self) -> Optional[Dict[str, Any]]:
        ent = self.factory_repo.get_active(chain=self.chain)
        return ent.model_dump() if ent else None

    def list_factories(self, *, limit: int = 50) -> List[Dict[str, Any]]:
        return [e.model_dump() for e in self.factory_repo.list_all(chain=self.chain, limit=limit)]
