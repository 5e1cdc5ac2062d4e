from __future__ import annotations

import pytest

from core.contracts.base_token import BaseToken
from core.services.exceptions import (
    ERC20InsufficientAllowance,
    ERC2612ExpiredSignature,
    ERC2612InvalidSigner,
    InsufficientBalance,
    InvalidFactory,
    InvalidInitialization,
    InvalidUnderlyingToken,
    ReentrancyGuardReentrantCall,
    TransferFailed,
    ZeroAmount,
)
from core.services.normalize import ZERO_ADDRESS
from core.services.permit import sign_permit
from tests import mock_contracts  # noqa: F401  registers the test-only contracts
from tests.helpers import ETHER, approve_and_deposit, deploy_factory


def custody(d) -> int:
    return d.ledger.call(d.token, "balanceOf", d.wrapper)


class TestInitialization:
    def test_wrapper_cannot_be_initialized_twice(self, deployment, accounts):
        with pytest.raises(InvalidInitialization):
            deployment.ledger.transact(
                accounts["user"], deployment.wrapper, "initialize", deployment.token, accounts["user"], "X", "X"
            )

    def test_bare_implementation_cannot_be_initialized(self, deployment, accounts):
        with pytest.raises(InvalidInitialization):
            deployment.ledger.transact(
                accounts["user"],
                deployment.wrapper_implementation,
                "initialize",
                deployment.token,
                accounts["user"],
                "X",
                "X",
            )

    def test_zero_underlying_rejected(self, deployment, accounts):
        with pytest.raises(InvalidUnderlyingToken):
            deployment.ledger.deploy_proxy(
                accounts["owner"], deployment.wrapper_implementation, "initialize", ZERO_ADDRESS, ZERO_ADDRESS, "I", "I"
            )

    def test_zero_factory_rejected(self, deployment, accounts):
        with pytest.raises(InvalidFactory):
            deployment.ledger.deploy_proxy(
                accounts["owner"], deployment.wrapper_implementation, "initialize", deployment.token, ZERO_ADDRESS, "I", "I"
            )


class TestDeposit:
    def test_one_percent_scenario(self, deployment, accounts):
        amount = 100 * ETHER
        rcpt = approve_and_deposit(deployment, accounts["user"], amount)

        (log,) = rcpt.events("Deposit")
        assert log.args == {
            "user": accounts["user"],
            "amount": amount,
            "fee": ETHER,
            "netAmount": 99 * ETHER,
            "feeReceiver": accounts["fee_receiver"],
        }
        led = deployment.ledger
        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == 99 * ETHER
        assert led.call(deployment.token, "balanceOf", accounts["fee_receiver"]) == ETHER
        assert led.call(deployment.token, "balanceOf", accounts["user"]) == 900 * ETHER
        assert custody(deployment) == 99 * ETHER
        assert led.call(deployment.wrapper, "totalUnderlying") == 99 * ETHER

    @pytest.mark.parametrize("fee", [0, 1, 250, 1999])
    @pytest.mark.parametrize("amount", [1, 9_999, 10**18 + 7])
    def test_fee_rounds_down(self, deployment, accounts, fee, amount):
        led = deployment.ledger
        led.transact(accounts["operator"], deployment.factory, "setDepositFee", fee)

        rcpt = approve_and_deposit(deployment, accounts["user"], amount)

        expected_fee = amount * fee // 10_000
        args = rcpt.events("Deposit")[0].args
        assert (args["fee"], args["netAmount"]) == (expected_fee, amount - expected_fee)
        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == amount - expected_fee
        assert led.call(deployment.wrapper, "totalSupply") == custody(deployment)

    def test_zero_fee_skips_fee_transfer(self, deployment, accounts):
        deployment.ledger.transact(accounts["operator"], deployment.factory, "setDepositFee", 0)
        rcpt = approve_and_deposit(deployment, accounts["user"], 10 * ETHER)
        transfers = [log for log in rcpt.events("Transfer") if log.address == deployment.token]
        assert len(transfers) == 1

    def test_zero_amount_rejected(self, deployment, accounts):
        with pytest.raises(ZeroAmount):
            deployment.ledger.transact(accounts["user"], deployment.wrapper, "deposit", 0)

    def test_requires_allowance(self, deployment, accounts):
        with pytest.raises(ERC20InsufficientAllowance) as exc:
            deployment.ledger.transact(accounts["user"], deployment.wrapper, "deposit", 100 * ETHER)
        assert exc.value.args == (deployment.wrapper, 0, 100 * ETHER)

    def test_fee_changes_apply_to_next_deposit(self, deployment, accounts):
        led = deployment.ledger
        led.transact(accounts["operator"], deployment.factory, "setDepositFee", 500)
        led.transact(accounts["treasurer"], deployment.factory, "setFeeReceiver", accounts["other"])

        rcpt = approve_and_deposit(deployment, accounts["user"], 100 * ETHER)

        args = rcpt.events("Deposit")[0].args
        assert args["fee"] == 5 * ETHER
        assert args["feeReceiver"] == accounts["other"]
        assert led.call(deployment.token, "balanceOf", accounts["other"]) == 5 * ETHER
        assert led.call(deployment.token, "balanceOf", accounts["fee_receiver"]) == 0


class TestWithdraw:
    def test_round_trip(self, deployment, accounts):
        led = deployment.ledger
        approve_and_deposit(deployment, accounts["user"], 100 * ETHER)
        wrapped = led.call(deployment.wrapper, "balanceOf", accounts["user"])

        rcpt = led.transact(accounts["user"], deployment.wrapper, "withdraw", wrapped)

        assert rcpt.events("Withdrawal")[0].args == {
            "user": accounts["user"],
            "amount": wrapped,
            "underlyingAmount": wrapped,
        }
        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == 0
        assert led.call(deployment.wrapper, "totalSupply") == 0
        assert custody(deployment) == 0
        # only the fee is lost
        assert led.call(deployment.token, "balanceOf", accounts["user"]) == 999 * ETHER

    def test_zero_amount_rejected(self, deployment, accounts):
        with pytest.raises(ZeroAmount):
            deployment.ledger.transact(accounts["user"], deployment.wrapper, "withdraw", 0)

    def test_without_balance(self, deployment, accounts):
        with pytest.raises(InsufficientBalance) as exc:
            deployment.ledger.transact(accounts["user"], deployment.wrapper, "withdraw", 1)
        assert exc.value.args == (accounts["user"], 1)

    def test_over_balance_burns_nothing(self, deployment, accounts):
        led = deployment.ledger
        approve_and_deposit(deployment, accounts["user"], 100 * ETHER)
        wrapped = led.call(deployment.wrapper, "balanceOf", accounts["user"])

        with pytest.raises(InsufficientBalance):
            led.transact(accounts["user"], deployment.wrapper, "withdraw", wrapped + 1)

        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == wrapped
        assert custody(deployment) == wrapped

    def test_wrapped_tokens_are_transferable(self, deployment, accounts):
        led = deployment.ledger
        approve_and_deposit(deployment, accounts["user"], 100 * ETHER)
        led.transact(accounts["user"], deployment.wrapper, "transfer", accounts["other"], 9 * ETHER)

        led.transact(accounts["other"], deployment.wrapper, "withdraw", 9 * ETHER)
        assert led.call(deployment.token, "balanceOf", accounts["other"]) == 9 * ETHER


class TestPermitDeposit:
    def _sign(self, d, signer, *, spender, value, deadline, nonce=None):
        led = d.ledger
        return sign_permit(
            signer.key,
            token_name=led.call(d.token, "name"),
            chain_id=led.chain_id,
            token=d.token,
            owner=signer.address,
            spender=spender,
            value=value,
            nonce=led.call(d.token, "nonces", signer.address) if nonce is None else nonce,
            deadline=deadline,
        )

    def test_deposit_with_permit(self, deployment, accounts, signers):
        led = deployment.ledger
        amount = 100 * ETHER
        deadline = led.timestamp + 3600
        v, r, s = self._sign(deployment, signers["owner"], spender=deployment.wrapper, value=amount, deadline=deadline)

        rcpt = led.transact(
            accounts["user"],
            deployment.wrapper,
            "depositWithPermit",
            accounts["owner"],
            accounts["user"],
            amount,
            deadline,
            v,
            r,
            s,
        )

        assert rcpt.events("Deposit")[0].args["user"] == accounts["user"]
        assert led.call(deployment.wrapper, "balanceOf", accounts["user"]) == 99 * ETHER
        assert led.call(deployment.token, "allowance", accounts["owner"], deployment.wrapper) == 0
        assert led.call(deployment.token, "nonces", accounts["owner"]) == 1

    def test_permit_cannot_be_replayed(self, deployment, accounts, signers):
        led = deployment.ledger
        deadline = led.timestamp + 3600
        v, r, s = self._sign(deployment, signers["owner"], spender=deployment.wrapper, value=ETHER, deadline=deadline)
        args = (accounts["owner"], accounts["user"], ETHER, deadline, v, r, s)

        led.transact(accounts["user"], deployment.wrapper, "depositWithPermit", *args)
        with pytest.raises(ERC2612InvalidSigner):
            led.transact(accounts["user"], deployment.wrapper, "depositWithPermit", *args)

    def test_expired_permit(self, deployment, accounts, signers):
        led = deployment.ledger
        deadline = led.timestamp  # the next block is later than this
        v, r, s = self._sign(deployment, signers["owner"], spender=deployment.wrapper, value=ETHER, deadline=deadline)

        with pytest.raises(ERC2612ExpiredSignature) as exc:
            led.transact(
                accounts["user"], deployment.wrapper, "depositWithPermit",
                accounts["owner"], accounts["user"], ETHER, deadline, v, r, s,
            )
        assert exc.value.args == (deadline,)

    def test_permit_signed_by_someone_else(self, deployment, accounts, signers):
        led = deployment.ledger
        deadline = led.timestamp + 3600
        v, r, s = self._sign(
            deployment,
            signers["other"],
            spender=deployment.wrapper,
            value=ETHER,
            deadline=deadline,
            nonce=0,
        )

        with pytest.raises(ERC2612InvalidSigner):
            led.transact(
                accounts["user"], deployment.wrapper, "depositWithPermit",
                accounts["owner"], accounts["user"], ETHER, deadline, v, r, s,
            )
        assert led.call(deployment.token, "nonces", accounts["owner"]) == 0


class TestMisbehavingUnderlying:
    def _wrap(self, ledger, accounts, contract_cls):
        token = ledger.deploy(accounts["owner"], contract_cls, "Bad", "BAD").contract_address
        d = deploy_factory(ledger, accounts)
        ledger.transact(accounts["admin"], d["factory"], "setImplementation", d["wrapper_impl"])
        wrapper = ledger.transact(accounts["user"], d["factory"], "deployWrappedToken", token).return_value
        return token, wrapper

    def test_transfer_from_returning_false(self, ledger, accounts):
        token, wrapper = self._wrap(ledger, accounts, mock_contracts.FalseReturningToken)
        ledger.transact(accounts["owner"], token, "approve", wrapper, ETHER)
        ledger.transact(accounts["owner"], token, "setFailTransfers", True)

        with pytest.raises(TransferFailed):
            ledger.transact(accounts["owner"], wrapper, "deposit", ETHER)
        assert ledger.call(wrapper, "totalSupply") == 0

    def test_transfer_returning_false_on_withdraw_restores_burn(self, ledger, accounts):
        token, wrapper = self._wrap(ledger, accounts, mock_contracts.FalseReturningToken)
        ledger.transact(accounts["owner"], token, "approve", wrapper, ETHER)
        ledger.transact(accounts["owner"], wrapper, "deposit", ETHER)
        wrapped = ledger.call(wrapper, "balanceOf", accounts["owner"])
        ledger.transact(accounts["owner"], token, "setFailTransfers", True)

        with pytest.raises(TransferFailed):
            ledger.transact(accounts["owner"], wrapper, "withdraw", wrapped)
        assert ledger.call(wrapper, "balanceOf", accounts["owner"]) == wrapped

    def test_reentrant_deposit_blocked(self, ledger, accounts):
        token, wrapper = self._wrap(ledger, accounts, mock_contracts.ReentrantToken)
        ledger.transact(accounts["owner"], token, "approve", wrapper, 10 * ETHER)
        ledger.transact(accounts["owner"], token, "setAttackTarget", wrapper)

        with pytest.raises(ReentrancyGuardReentrantCall):
            ledger.transact(accounts["owner"], wrapper, "deposit", ETHER)
        assert ledger.call(wrapper, "totalSupply") == 0

    def test_guard_released_after_success(self, deployment, accounts):
        approve_and_deposit(deployment, accounts["user"], ETHER)
        approve_and_deposit(deployment, accounts["user"], ETHER)
        assert deployment.ledger.call(deployment.wrapper, "balanceOf", accounts["user"]) == 2 * (ETHER - ETHER // 100)


def test_base_token_permit_views(ledger, accounts):
    token = ledger.deploy(accounts["owner"], BaseToken, "USDT", "USDT").contract_address
    assert ledger.call(token, "nonces", accounts["owner"]) == 0
    assert ledger.call(token, "DOMAIN_SEPARATOR").startswith("0x")
