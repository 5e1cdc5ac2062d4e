from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from adapters.chain.erc20_token import UnderlyingTokenAdapter
from adapters.chain.wrapper_factory import WrapperFactoryAdapter
from adapters.external.database.ledger_events_repository_mongodb import LedgerEventsRepositoryMongoDB
from config import get_settings
from core.domain.enums.role_enums import Role
from core.domain.enums.tx_enums import GasStrategy
from core.domain.schemas.onchain_types import FactoryConfig
from core.services.ledger import Ledger
from core.services.ledger_cache import get_ledger
from core.services.normalize import to_address
from core.services.tx_service import TxService


@dataclass
class WrapperFactoryUseCase:
    ledger: Ledger
    txs: TxService

    @classmethod
    def from_settings(cls) -> "WrapperFactoryUseCase":
        s = get_settings()
        ledger = get_ledger()
        events_repo = LedgerEventsRepositoryMongoDB() if s.PERSIST_EVENTS else None
        return cls(ledger=ledger, txs=TxService(ledger, events_repo=events_repo, chain=s.CHAIN_NAME))

    def _factory(self, address: str) -> WrapperFactoryAdapter:
        return WrapperFactoryAdapter(self.ledger, address)

    # ---------------- views ----------------

    def get_factory_config(self, factory: str) -> Dict[str, Any]:
        cfg = FactoryConfig(**self._factory(factory).get_config())
        return cfg.model_dump(by_alias=True)

    def get_roles(self, factory: str) -> Dict[str, Any]:
        f = self._factory(factory)
        return {role.value: {"id": role.id, "admin": f.get_role_admin(role.id)} for role in Role}

    def has_role(self, factory: str, *, role: str, account: str) -> bool:
        return self._factory(factory).has_role(role, account)

    def is_wrapped(self, factory: str, underlying: str) -> bool:
        return self._factory(factory).is_wrapped(underlying)

    # ---------------- tx runners ----------------

    def deploy_wrapped_token(
        self,
        factory: str,
        *,
        sender: str,
        underlying: str,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> Dict[str, Any]:
        f = self._factory(factory)
        res = self.txs.send(to_address(sender), f.fn_deploy_wrapped_token(underlying), gas_strategy=gas_strategy)

        wrapper = res["result"]["return_value"]
        meta = UnderlyingTokenAdapter(self.ledger, underlying).meta()
        res["result"] = {
            "underlying": meta.model_dump(),
            "wrapped_token": wrapper,
        }
        return res

    def set_implementation(
        self, factory: str, *, sender: str, implementation: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender), self._factory(factory).fn_set_implementation(implementation), gas_strategy=gas_strategy
        )
        res["result"] = {"implementation": to_address(implementation)}
        return res

    def set_fee_receiver(
        self, factory: str, *, sender: str, fee_receiver: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender), self._factory(factory).fn_set_fee_receiver(fee_receiver), gas_strategy=gas_strategy
        )
        res["result"] = {"fee_receiver": to_address(fee_receiver)}
        return res

    def set_deposit_fee(
        self, factory: str, *, sender: str, fee: int, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(to_address(sender), self._factory(factory).fn_set_deposit_fee(fee), gas_strategy=gas_strategy)
        res["result"] = {"deposit_fee": int(fee)}
        return res

    def grant_role(
        self, factory: str, *, sender: str, role: str, account: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender), self._factory(factory).fn_grant_role(role, account), gas_strategy=gas_strategy
        )
        res["result"] = {"role": Role.resolve(role), "account": to_address(account), "granted": True}
        return res

    def revoke_role(
        self, factory: str, *, sender: str, role: str, account: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender), self._factory(factory).fn_revoke_role(role, account), gas_strategy=gas_strategy
        )
        res["result"] = {"role": Role.resolve(role), "account": to_address(account), "granted": False}
        return res

    def renounce_role(
        self, factory: str, *, sender: str, role: str, gas_strategy: GasStrategy = GasStrategy.BUFFERED
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender), self._factory(factory).fn_renounce_role(role, sender), gas_strategy=gas_strategy
        )
        res["result"] = {"role": Role.resolve(role), "account": to_address(sender), "granted": False}
        return res

    def upgrade_wrapped_token(
        self,
        factory: str,
        *,
        sender: str,
        wrapper: str,
        new_implementation: str,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> Dict[str, Any]:
        res = self.txs.send(
            to_address(sender),
            self._factory(factory).fn_upgrade_wrapped_token(wrapper, new_implementation),
            gas_strategy=gas_strategy,
        )
        res["result"] = {
            "wrapped_token": to_address(wrapper),
            "implementation": self.ledger.implementation_of(wrapper),
        }
        return res

    def get_wrapped_tokens(self, factory: str, *, with_underlying: bool = False) -> Dict[str, Any]:
        f = self._factory(factory)
        tokens = f.wrapped_tokens()
        out: Dict[str, Any] = {"factory": f.address, "wrapped_tokens": tokens}
        if with_underlying:
            out["underlying"] = {
                w: self.ledger.call(w, "underlyingToken") for w in tokens
            }
        return out

