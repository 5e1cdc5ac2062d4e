from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from core.contracts.wrapper_erc20 import WrapperERC20
from core.contracts.wrapper_factory import WrapperFactory
from core.services.ledger import Ledger

ETHER = 10**18
INITIAL_FEE = 100  # 1%


@dataclass
class Deployment:
    ledger: Ledger
    token: str
    wrapper_implementation: str
    factory_implementation: str
    factory: str
    wrapper: str


def deploy_factory(ledger: Ledger, accounts: Dict[str, str], *, fee: int = INITIAL_FEE) -> Dict[str, str]:
    wrapper_impl = ledger.deploy(accounts["owner"], WrapperERC20).contract_address
    factory_impl = ledger.deploy(accounts["owner"], WrapperFactory).contract_address
    factory = ledger.deploy_proxy(
        accounts["owner"],
        factory_impl,
        "initialize",
        accounts["admin"],
        accounts["operator"],
        accounts["treasurer"],
        accounts["fee_receiver"],
        fee,
    ).contract_address
    return {"wrapper_impl": wrapper_impl, "factory_impl": factory_impl, "factory": factory}


def approve_and_deposit(d: Deployment, sender: str, amount: int):
    d.ledger.transact(sender, d.token, "approve", d.wrapper, amount)
    return d.ledger.transact(sender, d.wrapper, "deposit", amount)
