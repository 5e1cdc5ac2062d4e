from __future__ import annotations

import pytest

from core.contracts.base_token import BaseToken
from core.contracts.wrapper_factory import ADMINISTRATOR_ROLE, OPERATOR_ROLE, TREASURER_ROLE
from core.services.exceptions import (
    AccessControlUnauthorizedAccount,
    ERC1967InvalidImplementation,
    FunctionNotFound,
    OwnableUnauthorizedAccount,
    StorageLayoutIncompatible,
    TokenNotWrapped,
    UUPSUnauthorizedCallContext,
)
from tests import mock_contracts
from tests.helpers import ETHER, approve_and_deposit


@pytest.fixture
def factory_v2(deployment, accounts) -> str:
    return deployment.ledger.deploy(accounts["owner"], mock_contracts.WrapperFactoryV2).contract_address


class TestFactoryUpgrade:
    def test_upgrade_keeps_state_and_adds_slot(self, deployment, accounts, factory_v2):
        led = deployment.ledger
        rcpt = led.transact(accounts["admin"], deployment.factory, "upgradeToAndCall", factory_v2, None)

        assert rcpt.events("Upgraded")[0].args == {"implementation": factory_v2}
        assert led.implementation_of(deployment.factory) == factory_v2
        assert led.call(deployment.factory, "getDepositFee") == 100
        assert led.call(deployment.factory, "getFeeReceiver") == accounts["fee_receiver"]
        assert led.call(deployment.factory, "getWrappedTokens") == [deployment.wrapper]
        assert led.call(deployment.factory, "getImplementation") == deployment.wrapper_implementation
        for role, holder in ((ADMINISTRATOR_ROLE, "admin"), (OPERATOR_ROLE, "operator"), (TREASURER_ROLE, "treasurer")):
            assert led.call(deployment.factory, "hasRole", role, accounts[holder])
        assert led.call(deployment.factory, "testProxy") == ""

        led.transact(accounts["admin"], deployment.factory, "setVersion", "2.0.0")
        assert led.call(deployment.factory, "testProxy") == "2.0.0"

    def test_upgrade_and_call_in_one_transaction(self, deployment, accounts, factory_v2):
        led = deployment.ledger
        led.transact(accounts["admin"], deployment.factory, "upgradeToAndCall", factory_v2, ("setVersion", ["2.0.0"]))
        assert led.call(deployment.factory, "testProxy") == "2.0.0"

    def test_failed_follow_up_call_reverts_the_upgrade(self, deployment, accounts, factory_v2):
        led = deployment.ledger
        with pytest.raises(FunctionNotFound):
            led.transact(accounts["admin"], deployment.factory, "upgradeToAndCall", factory_v2, ("noSuchFunction", []))
        assert led.implementation_of(deployment.factory) == deployment.factory_implementation

    def test_only_admin_upgrades(self, deployment, accounts, factory_v2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            deployment.ledger.transact(accounts["user"], deployment.factory, "upgradeToAndCall", factory_v2, None)

    def test_incompatible_layout_rejected(self, deployment, accounts):
        led = deployment.ledger
        reordered = led.deploy(accounts["owner"], mock_contracts.ReorderedFactory).contract_address
        with pytest.raises(StorageLayoutIncompatible):
            led.transact(accounts["admin"], deployment.factory, "upgradeToAndCall", reordered, None)
        assert led.implementation_of(deployment.factory) == deployment.factory_implementation

    def test_non_upgradeable_target_rejected(self, deployment, accounts):
        led = deployment.ledger
        token = led.deploy(accounts["owner"], BaseToken, "T", "T").contract_address
        with pytest.raises(ERC1967InvalidImplementation):
            led.transact(accounts["admin"], deployment.factory, "upgradeToAndCall", token, None)

    def test_implementation_cannot_upgrade_itself(self, deployment, accounts, factory_v2):
        with pytest.raises(UUPSUnauthorizedCallContext):
            deployment.ledger.transact(
                accounts["admin"], deployment.factory_implementation, "upgradeToAndCall", factory_v2, None
            )

    def test_proxiable_uuid_only_on_implementation(self, deployment):
        led = deployment.ledger
        assert led.call(deployment.factory_implementation, "proxiableUUID").startswith("0x360894")
        with pytest.raises(UUPSUnauthorizedCallContext):
            led.call(deployment.factory, "proxiableUUID")


class TestWrapperUpgrade:
    def test_factory_upgrades_wrapper(self, deployment, accounts):
        led = deployment.ledger
        approve_and_deposit(deployment, accounts["user"], 10 * ETHER)
        v2 = led.deploy(accounts["owner"], mock_contracts.WrapperERC20V2).contract_address

        led.transact(accounts["admin"], deployment.factory, "upgradeWrappedToken", deployment.wrapper, v2)

        assert led.implementation_of(deployment.wrapper) == v2
        assert led.call(deployment.wrapper, "version") == 2
        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == 10 * ETHER - ETHER // 10

    def test_only_admin_upgrades_wrappers(self, deployment, accounts):
        led = deployment.ledger
        v2 = led.deploy(accounts["owner"], mock_contracts.WrapperERC20V2).contract_address
        with pytest.raises(AccessControlUnauthorizedAccount):
            led.transact(accounts["operator"], deployment.factory, "upgradeWrappedToken", deployment.wrapper, v2)

    def test_unknown_wrapper_rejected(self, deployment, accounts):
        led = deployment.ledger
        v2 = led.deploy(accounts["owner"], mock_contracts.WrapperERC20V2).contract_address
        with pytest.raises(TokenNotWrapped):
            led.transact(accounts["admin"], deployment.factory, "upgradeWrappedToken", deployment.token, v2)

    def test_wrapper_owner_is_the_factory(self, deployment, accounts):
        led = deployment.ledger
        v2 = led.deploy(accounts["owner"], mock_contracts.WrapperERC20V2).contract_address
        with pytest.raises(OwnableUnauthorizedAccount) as exc:
            led.transact(accounts["admin"], deployment.wrapper, "upgradeToAndCall", v2, None)
        assert exc.value.args == (accounts["admin"],)
