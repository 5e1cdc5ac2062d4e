# adapters/chain/wrapper_factory.py
from typing import Any, Dict, List

from core.contracts.wrapper_factory import WrapperFactory
from core.domain.enums.role_enums import Role
from core.domain.schemas.onchain_types import LedgerCall
from core.services.ledger import Ledger
from core.services.normalize import to_address

ABI_WRAPPER_FACTORY = WrapperFactory.abi()


class WrapperFactoryAdapter:
    """
    Thin wrapper for a deployed WrapperFactory proxy.

    - Anyone: fn_deploy_wrapped_token
    - Administrator: fn_set_implementation, fn_grant_role, fn_revoke_role, fn_upgrade_wrapped_token, fn_upgrade_to
    - Operator: fn_set_deposit_fee
    - Treasurer: fn_set_fee_receiver
    """

    def __init__(self, ledger: Ledger, address: str):
        if not address:
            raise RuntimeError("WrapperFactoryAdapter: address not configured")
        self.ledger = ledger
        self.address = to_address(address)

    def _view(self, fn: str, *args: Any) -> Any:
        return self.ledger.call(self.address, fn, *args)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def wrapped_tokens(self) -> List[str]:
        return list(self._view("getWrappedTokens"))

    def fee_receiver(self) -> str:
        return self._view("getFeeReceiver")

    def deposit_fee(self) -> int:
        return int(self._view("getDepositFee"))

    def wrapper_implementation(self) -> str:
        return self._view("getImplementation")

    def is_wrapped(self, underlying: str) -> bool:
        return bool(self._view("isWrapped", to_address(underlying)))

    def has_role(self, role: str, account: str) -> bool:
        return bool(self._view("hasRole", Role.resolve(role), to_address(account)))

    def get_role_admin(self, role: str) -> str:
        return self._view("getRoleAdmin", Role.resolve(role))

    def get_config(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "implementation": self.ledger.implementation_of(self.address),
            "wrapperImplementation": self.wrapper_implementation(),
            "feeReceiver": self.fee_receiver(),
            "depositFee": self.deposit_fee(),
            "maxFee": int(self._view("MAX_FEE")),
            "feeDenominator": int(self._view("FEE_DENOMINATOR")),
            "wrappedTokens": self.wrapped_tokens(),
        }

    def roles(self) -> Dict[str, str]:
        return {role.value: self._view(role.value) for role in Role}

    # ---------------- fn builders (for TxService.send) ----------------

    def _fn(self, fn: str, *args: Any) -> LedgerCall:
        return LedgerCall(to=self.address, fn=fn, args=tuple(args))

    def fn_deploy_wrapped_token(self, underlying: str) -> LedgerCall:
        return self._fn("deployWrappedToken", to_address(underlying))

    def fn_set_implementation(self, implementation: str) -> LedgerCall:
        return self._fn("setImplementation", to_address(implementation))

    def fn_set_fee_receiver(self, fee_receiver: str) -> LedgerCall:
        return self._fn("setFeeReceiver", to_address(fee_receiver))

    def fn_set_deposit_fee(self, fee: int) -> LedgerCall:
        return self._fn("setDepositFee", int(fee))

    def fn_grant_role(self, role: str, account: str) -> LedgerCall:
        return self._fn("grantRole", Role.resolve(role), to_address(account))

    def fn_revoke_role(self, role: str, account: str) -> LedgerCall:
        return self._fn("revokeRole", Role.resolve(role), to_address(account))

    def fn_renounce_role(self, role: str, account: str) -> LedgerCall:
        return self._fn("renounceRole", Role.resolve(role), to_address(account))

    def fn_upgrade_wrapped_token(self, wrapper: str, new_implementation: str) -> LedgerCall:
        return self._fn("upgradeWrappedToken", to_address(wrapper), to_address(new_implementation))

    def fn_upgrade_to(self, new_implementation: str, call: Any = None) -> LedgerCall:
        return self._fn("upgradeToAndCall", to_address(new_implementation), call)
