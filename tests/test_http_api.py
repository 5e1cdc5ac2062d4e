from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from adapters.entry.http.view import factories, ledger as ledger_view, wrappers
from adapters.entry.http.view.admin import admin_view
from adapters.external.database.ledger_events_repository_mongodb import LedgerEventsRepositoryMongoDB
from adapters.external.database.ledger_snapshot_repository_mongodb import LedgerSnapshotRepositoryMongoDB
from adapters.external.database.wrapper_factory_repository_mongodb import WrapperFactoryRepositoryMongoDB
from core.services import ledger_cache
from core.services.tx_service import TxService
from core.use_cases.admin_wrapper_factory_usecase import AdminWrapperFactoryUseCase
from core.use_cases.ledger_admin_usecase import LedgerAdminUseCase
from core.use_cases.wrapper_factory_usecase import WrapperFactoryUseCase
from core.use_cases.wrapper_usecase import WrapperUseCase
from main import create_app
from tests.helpers import ETHER


@pytest.fixture
def client(ledger, mongo_db):
    events_repo = LedgerEventsRepositoryMongoDB(db=mongo_db)
    ledger_cache.install_ledger(ledger)

    app = create_app(with_lifespan=False)
    app.dependency_overrides[factories.get_use_case] = lambda: WrapperFactoryUseCase(
        ledger=ledger, txs=TxService(ledger, events_repo=events_repo, chain="devnet")
    )
    app.dependency_overrides[wrappers.get_use_case] = lambda: WrapperUseCase(
        ledger=ledger,
        txs=TxService(ledger, events_repo=events_repo, chain="devnet"),
        events_repo=events_repo,
        chain="devnet",
    )
    app.dependency_overrides[ledger_view.get_use_case] = lambda: LedgerAdminUseCase(
        ledger=ledger,
        txs=TxService(ledger, chain="devnet"),
        snapshot_repo=LedgerSnapshotRepositoryMongoDB(db=mongo_db),
        chain="devnet",
    )
    app.dependency_overrides[admin_view.get_use_case] = lambda: AdminWrapperFactoryUseCase(
        ledger=ledger,
        txs=TxService(ledger, chain="devnet"),
        factory_repo=WrapperFactoryRepositoryMongoDB(db=mongo_db),
        chain="devnet",
    )

    yield TestClient(app)
    ledger_cache.reset()


@pytest.fixture
def wired(client, accounts):
    """
    Token, factory and wrapper created through the API, with the user funded.
    """
    r = client.post("/api/ledger/tokens", json={"sender": accounts["owner"], "name": "Tether", "symbol": "USDT"})
    assert r.status_code == 200, r.text
    token = r.json()["result"]["token"]["address"]

    r = client.post(
        "/api/admin/wrapper-factory/create",
        json={
            "sender": accounts["owner"],
            "administrator": accounts["admin"],
            "operator": accounts["operator"],
            "treasurer": accounts["treasurer"],
            "fee_receiver": accounts["fee_receiver"],
            "initial_fee": 100,
        },
    )
    assert r.status_code == 200, r.text
    factory = r.json()["result"]["address"]

    r = client.post(f"/api/factories/{factory}/wrapped-tokens", json={"sender": accounts["user"], "underlying": token})
    assert r.status_code == 200, r.text
    wrapper = r.json()["result"]["wrapped_token"]

    r = client.post(
        f"/api/ledger/tokens/{token}/transfer",
        json={"sender": accounts["owner"], "to": accounts["user"], "amount": 1000 * ETHER},
    )
    assert r.status_code == 200, r.text
    return {"token": token, "factory": factory, "wrapper": wrapper}


class TestDepositFlow:
    def test_approve_deposit_and_read_back(self, client, accounts, wired):
        w = wired["wrapper"]
        user = accounts["user"]

        r = client.post(f"/api/wrappers/{w}/approve", json={"sender": user, "amount": 100 * ETHER})
        assert r.status_code == 200, r.text

        r = client.post(f"/api/wrappers/{w}/deposit", json={"sender": user, "amount": 100 * ETHER})
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["status"] == 1
        assert body["result"]["fee"] == str(ETHER)
        assert body["result"]["net_amount"] == str(99 * ETHER)
        assert body["result"]["fee_receiver"] == accounts["fee_receiver"]

        balances = client.get(f"/api/wrappers/{w}/balances/{user}").json()
        assert balances["wrapped_balance"] == str(99 * ETHER)
        assert balances["underlying_balance"] == str(900 * ETHER)
        assert balances["underlying_allowance"] == 0

        events = client.get(f"/api/wrappers/{w}/events", params={"event": "Deposit"}).json()["events"]
        assert [e["args"]["amount"] for e in events] == [str(100 * ETHER)]

    def test_withdraw(self, client, accounts, wired):
        w, user = wired["wrapper"], accounts["user"]
        client.post(f"/api/wrappers/{w}/approve", json={"sender": user, "amount": 10 * ETHER})
        client.post(f"/api/wrappers/{w}/deposit", json={"sender": user, "amount": 10 * ETHER})

        r = client.post(f"/api/wrappers/{w}/withdraw", json={"sender": user, "amount": 5 * ETHER})
        assert r.status_code == 200, r.text
        assert r.json()["result"]["wrapped_balance"] == str(5 * ETHER - ETHER // 10)

    def test_deposit_without_allowance_is_a_client_error(self, client, accounts, wired):
        r = client.post(f"/api/wrappers/{wired['wrapper']}/deposit", json={"sender": accounts["user"], "amount": 1})
        assert r.status_code == 400
        detail = r.json()["detail"]
        assert detail["error"] == "ERC20InsufficientAllowance"
        assert detail["receipt"]["status"] == 0

    def test_wrapper_info(self, client, wired):
        info = client.get(f"/api/wrappers/{wired['wrapper']}").json()
        assert info["name"] == "Wrapped-Tether"
        assert info["symbol"] == "W-USDT"
        assert info["underlying"]["address"] == wired["token"]
        assert info["owner"] == wired["factory"]


class TestFactoryEndpoints:
    def test_config_and_quote(self, client, accounts, wired):
        cfg = client.get(f"/api/factories/{wired['factory']}/config").json()
        assert cfg["depositFee"] == 100
        assert cfg["maxFee"] == 2000
        assert cfg["feeDenominator"] == 10_000
        assert cfg["wrappedTokens"] == [wired["wrapper"]]

        quote = client.get(f"/api/wrappers/{wired['wrapper']}/quote", params={"amount": 10_000}).json()
        assert quote == {
            "amount": 10_000,
            "fee_rate": 100,
            "fee": 100,
            "net_amount": 9_900,
            "fee_receiver": accounts["fee_receiver"],
        }

    def test_fee_too_high(self, client, accounts, wired):
        r = client.post(
            f"/api/factories/{wired['factory']}/deposit-fee", json={"sender": accounts["operator"], "fee": 2000}
        )
        assert r.status_code == 400
        assert r.json()["detail"]["error"] == "FeeTooHigh"
        assert r.json()["detail"]["args"] == ["2000", "2000"]

    def test_invalid_role(self, client, accounts, wired):
        r = client.post(
            f"/api/factories/{wired['factory']}/roles/grant",
            json={"sender": accounts["admin"], "role": "MINTER", "account": accounts["other"]},
        )
        assert r.status_code == 400
        assert r.json()["detail"]["error"] == "InvalidRole"

    def test_grant_role_by_name(self, client, accounts, wired):
        f = wired["factory"]
        r = client.post(
            f"/api/factories/{f}/roles/grant",
            json={"sender": accounts["admin"], "role": "operator", "account": accounts["other"]},
        )
        assert r.status_code == 200, r.text
        has = client.get(f"/api/factories/{f}/roles/OPERATOR/{accounts['other']}").json()
        assert has["has_role"] is True

    def test_second_factory_refused(self, client, accounts, wired):
        r = client.post(
            "/api/admin/wrapper-factory/create",
            json={
                "sender": accounts["owner"],
                "administrator": accounts["admin"],
                "operator": accounts["operator"],
                "treasurer": accounts["treasurer"],
                "fee_receiver": accounts["fee_receiver"],
            },
        )
        assert r.status_code == 400
        assert client.get("/api/admin/wrapper-factory/active").json()["factory"]["address"] == wired["factory"]


class TestLedgerEndpoints:
    def test_receipts(self, client, accounts, wired):
        r = client.post(
            f"/api/ledger/tokens/{wired['token']}/approve",
            json={"sender": accounts["user"], "spender": accounts["other"], "amount": 1},
        )
        tx_hash = r.json()["tx_hash"]

        rcpt = client.get(f"/api/ledger/receipts/{tx_hash}")
        assert rcpt.status_code == 200
        assert rcpt.json()["status"] == 1
        assert client.get("/api/ledger/receipts/0x" + "00" * 32).status_code == 404

    def test_snapshots(self, client, wired):
        r = client.post("/api/ledger/snapshots", json={"label": "after-setup"})
        assert r.status_code == 200, r.text
        saved = r.json()

        listed = client.get("/api/ledger/snapshots").json()["snapshots"]
        assert [s["id"] for s in listed] == [saved["id"]]
        assert listed[0]["label"] == "after-setup"

        r = client.post("/api/ledger/snapshots/restore", json={})
        assert r.status_code == 200, r.text
        assert r.json()["block_number"] == saved["block_number"]

    def test_contract_abi(self, client):
        abi = client.get("/api/ledger/contracts/WrapperERC20/abi").json()["abi"]
        assert "deposit" in {item["name"] for item in abi if item["type"] == "function"}
        assert client.get("/api/ledger/contracts/Nope/abi").status_code == 404
