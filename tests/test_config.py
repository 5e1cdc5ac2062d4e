from __future__ import annotations

import pytest

from config import get_settings
from core.services import ledger_cache
from core.services.tx_service import TxService
from core.use_cases.wrapper_factory_usecase import WrapperFactoryUseCase
from core.use_cases.wrapper_usecase import WrapperUseCase


@pytest.fixture
def mixed_case_chain(monkeypatch):
    monkeypatch.setenv("CHAIN_NAME", "  DevNet-A ")
    monkeypatch.setenv("PERSIST_EVENTS", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    ledger_cache.reset()


def test_chain_name_is_normalized_once(mixed_case_chain):
    assert get_settings().CHAIN_NAME == "devnet-a"


def test_every_consumer_sees_the_same_chain_key(mixed_case_chain, ledger):
    assert TxService(ledger).chain == "devnet-a"
    assert TxService(ledger, chain="DevNet-A").chain == "devnet-a"
    assert WrapperFactoryUseCase.from_settings().txs.chain == "devnet-a"

    uc = WrapperUseCase.from_settings()
    assert uc.chain == uc.txs.chain == "devnet-a"
