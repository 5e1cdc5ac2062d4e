from __future__ import annotations

import os
from typing import Dict

import mongomock
import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount

# settings are cached on first use; keep tests off any real database
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017/wrapper_ledger_test")
os.environ.setdefault("MONGO_DB", "wrapper_ledger_test")
os.environ.setdefault("CHAIN_NAME", "devnet")
os.environ.setdefault("PERSIST_EVENTS", "false")

from core.contracts.base_token import BaseToken  # noqa: E402
from core.services.ledger import Ledger  # noqa: E402
from tests.helpers import ETHER, Deployment, deploy_factory  # noqa: E402

ACCOUNT_NAMES = ("owner", "admin", "operator", "treasurer", "user", "fee_receiver", "other")


@pytest.fixture
def signers() -> Dict[str, LocalAccount]:
    """Deterministic keyed accounts; private keys are needed for permits."""
    return {name: Account.from_key("0x" + f"{i + 1:064x}") for i, name in enumerate(ACCOUNT_NAMES)}


@pytest.fixture
def accounts(signers) -> Dict[str, str]:
    return {name: acct.address for name, acct in signers.items()}


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(chain_id=31337, block_gas_limit=30_000_000, genesis_timestamp=1_700_000_000, block_time_sec=12)


@pytest.fixture
def deployment(ledger, accounts) -> Deployment:
    """
    BaseToken "USDT" (supply held by `owner`), a 1% factory pointing at the
    WrapperERC20 implementation, one wrapper for USDT, and 1000 USDT for `user`.
    """
    token = ledger.deploy(accounts["owner"], BaseToken, "USDT", "USDT").contract_address
    d = deploy_factory(ledger, accounts)
    ledger.transact(accounts["admin"], d["factory"], "setImplementation", d["wrapper_impl"])
    wrapper = ledger.transact(accounts["user"], d["factory"], "deployWrappedToken", token).return_value
    ledger.transact(accounts["owner"], token, "transfer", accounts["user"], 1_000 * ETHER)
    return Deployment(
        ledger=ledger,
        token=token,
        wrapper_implementation=d["wrapper_impl"],
        factory_implementation=d["factory_impl"],
        factory=d["factory"],
        wrapper=wrapper,
    )


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["wrapper_ledger_test"]
