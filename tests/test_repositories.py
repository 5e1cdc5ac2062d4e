from __future__ import annotations

import pytest

from adapters.external.database.helper_repo import sanitize_for_mongo
from adapters.external.database.ledger_snapshot_repository_mongodb import LedgerSnapshotRepositoryMongoDB
from adapters.external.database.wrapper_factory_repository_mongodb import WrapperFactoryRepositoryMongoDB
from core.domain.enums.factory_enums import FactoryStatus
from core.services.ledger import Ledger
from core.services.tx_service import TxService
from core.use_cases.admin_wrapper_factory_usecase import AdminWrapperFactoryUseCase
from core.use_cases.ledger_admin_usecase import LedgerAdminUseCase
from core.services import ledger_cache


@pytest.fixture(autouse=True)
def _reset_ledger_cache():
    yield
    ledger_cache.reset()


def test_sanitize_for_mongo_stringifies_wide_ints():
    doc = {"a": 2**70, "b": [1, (2**64, True)], "c": {"d": -(2**63)}}
    assert sanitize_for_mongo(doc) == {"a": str(2**70), "b": [1, [str(2**64), True]], "c": {"d": -(2**63)}}


class TestSnapshotRepository:
    def test_insert_and_load_latest(self, deployment, accounts, mongo_db):
        repo = LedgerSnapshotRepositoryMongoDB(db=mongo_db)
        repo.ensure_indexes()

        first = repo.insert(deployment.ledger.snapshot(chain="DevNet", label="first"))
        deployment.ledger.advance_time(60)
        second = repo.insert(deployment.ledger.snapshot(chain="devnet", label="second"))

        latest = repo.get_latest(chain="devnet")
        assert latest.id in (first, second)
        assert repo.get_by_id(first).label == "first"
        assert repo.get_by_id("not-an-id") is None

        restored = Ledger.from_snapshot(repo.get_by_id(second))
        assert restored.call(deployment.wrapper, "underlyingToken") == deployment.token
        assert restored.timestamp == deployment.ledger.timestamp

    def test_list_recent_skips_account_payload(self, deployment, mongo_db):
        repo = LedgerSnapshotRepositoryMongoDB(db=mongo_db)
        repo.insert(deployment.ledger.snapshot(chain="devnet"))
        (item,) = repo.list_recent(chain="devnet")
        assert item.accounts == []
        assert item.block_number == deployment.ledger.block_number


class TestLedgerAdminUseCase:
    def _use_case(self, ledger, mongo_db) -> LedgerAdminUseCase:
        return LedgerAdminUseCase(
            ledger=ledger,
            txs=TxService(ledger, chain="devnet"),
            snapshot_repo=LedgerSnapshotRepositoryMongoDB(db=mongo_db),
            chain="devnet",
        )

    def test_save_and_restore(self, deployment, accounts, mongo_db):
        uc = self._use_case(deployment.ledger, mongo_db)
        saved = uc.save_snapshot(label="before")
        uc.transfer_token(deployment.token, sender=accounts["user"], to=accounts["other"], amount=5)

        restored = uc.restore_snapshot(snapshot_id=saved["id"])

        assert restored["block_number"] == saved["block_number"]
        assert uc.ledger is ledger_cache.get_ledger()
        assert uc.txs.ledger is uc.ledger
        assert uc.token_balance(deployment.token, accounts["other"])["balance"] == "0"

    def test_restore_without_snapshot(self, ledger, mongo_db):
        with pytest.raises(ValueError):
            self._use_case(ledger, mongo_db).restore_snapshot()

    def test_status_lists_contracts(self, deployment, mongo_db):
        status = self._use_case(deployment.ledger, mongo_db).status()
        codes = {c["address"]: c["code"] for c in status["contracts"]}
        assert codes[deployment.wrapper] == "WrapperERC20"
        assert codes[deployment.factory] == "WrapperFactory"
        assert codes[deployment.token] == "BaseToken"


class TestAdminWrapperFactoryUseCase:
    def _use_case(self, ledger, mongo_db) -> AdminWrapperFactoryUseCase:
        return AdminWrapperFactoryUseCase(
            ledger=ledger,
            txs=TxService(ledger, chain="devnet"),
            factory_repo=WrapperFactoryRepositoryMongoDB(db=mongo_db),
            chain="devnet",
        )

    def _create(self, uc, accounts):
        return uc.create_wrapper_factory(
            deployer=accounts["owner"],
            administrator=accounts["admin"],
            operator=accounts["operator"],
            treasurer=accounts["treasurer"],
            fee_receiver=accounts["fee_receiver"],
            initial_fee=100,
        )

    def test_create_records_active_factory(self, ledger, accounts, mongo_db):
        uc = self._use_case(ledger, mongo_db)
        res = self._create(uc, accounts)

        factory = res["result"]["address"]
        assert ledger.call(factory, "getImplementation") == res["result"]["wrapper_implementation"]
        assert ledger.implementation_of(factory) == res["result"]["factory_implementation"]

        active = uc.get_active()
        assert active["address"] == factory
        assert active["status"] == FactoryStatus.ACTIVE

    def test_second_factory_needs_archived_previous(self, ledger, accounts, mongo_db):
        uc = self._use_case(ledger, mongo_db)
        first = self._create(uc, accounts)["result"]["address"]

        with pytest.raises(ValueError):
            self._create(uc, accounts)

        uc.factory_repo.set_all_status(chain="devnet", status=FactoryStatus.ARCHIVED_CAN_CREATE_NEW)
        second = self._create(uc, accounts)["result"]["address"]

        assert second != first
        assert uc.get_active()["address"] == second
        assert len(uc.list_factories()) == 2

    def test_deploy_implementation(self, ledger, accounts, mongo_db):
        uc = self._use_case(ledger, mongo_db)
        res = uc.deploy_implementation(deployer=accounts["owner"], contract="WrapperERC20")
        assert ledger.code_of(res["result"]["address"]).CONTRACT_NAME == "WrapperERC20"
        with pytest.raises(ValueError):
            uc.deploy_implementation(deployer=accounts["owner"], contract="BaseToken")
