from __future__ import annotations

from typing import Any, Optional


class ContractRevert(Exception):
    """
    Custom error raised by contract code.

    The class name is the error selector (e.g. `ZeroAddress`) and the positional
    args are the error parameters, so callers can match on the exact condition.
    Raising one aborts the whole enclosing transaction.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def as_dict(self) -> dict:
        return {"error": self.name, "args": [str(a) if isinstance(a, int) and not isinstance(a, bool) else a for a in self.args]}

    def __str__(self) -> str:
        return f"{self.name}({', '.join(repr(a) for a in self.args)})"


# ---------------- input validation ----------------

class ZeroAddress(ContractRevert):
    pass


class ZeroAmount(ContractRevert):
    pass


class InvalidUnderlyingToken(ContractRevert):
    pass


class InvalidFactory(ContractRevert):
    pass


class InvalidArguments(ContractRevert):
    pass


# ---------------- policy ----------------

class TokenAlreadyWrapped(ContractRevert):
    pass


class TokenNotWrapped(ContractRevert):
    pass


class FeeTooHigh(ContractRevert):
    pass


class InsufficientBalance(ContractRevert):
    pass


class InvalidRole(ContractRevert):
    def __init__(self, reason: str = "Invalid role") -> None:
        super().__init__(reason)

    def __str__(self) -> str:
        return str(self.args[0])


# ---------------- authorization ----------------

class AccessControlUnauthorizedAccount(ContractRevert):
    pass


class AccessControlBadConfirmation(ContractRevert):
    pass


class OwnableUnauthorizedAccount(ContractRevert):
    pass


class OwnableInvalidOwner(ContractRevert):
    pass


# ---------------- lifecycle / upgrades ----------------

class InvalidInitialization(ContractRevert):
    pass


class NotInitializing(ContractRevert):
    pass


class UUPSUnauthorizedCallContext(ContractRevert):
    pass


class UUPSUnsupportedProxiableUUID(ContractRevert):
    pass


class ERC1967InvalidImplementation(ContractRevert):
    pass


class StorageLayoutIncompatible(ContractRevert):
    pass


class ReentrancyGuardReentrantCall(ContractRevert):
    pass


# ---------------- collaborator (underlying asset) ----------------

class TransferFailed(ContractRevert):
    pass


class ERC20InsufficientBalance(ContractRevert):
    pass


class ERC20InsufficientAllowance(ContractRevert):
    pass


class ERC20InvalidSender(ContractRevert):
    pass


class ERC20InvalidReceiver(ContractRevert):
    pass


class ERC20InvalidApprover(ContractRevert):
    pass


class ERC20InvalidSpender(ContractRevert):
    pass


class ERC2612ExpiredSignature(ContractRevert):
    pass


class ERC2612InvalidSigner(ContractRevert):
    pass


class ECDSAInvalidSignature(ContractRevert):
    pass


# ---------------- virtual machine ----------------

class OutOfGas(ContractRevert):
    pass


class FunctionNotFound(ContractRevert):
    pass


class StaticCallViolation(ContractRevert):
    pass


class ContractNotFound(ContractRevert):
    pass


# ---------------- service layer ----------------

class TransactionRevertedError(Exception):
    """
    Raised by TxService when a transaction was executed and reverted.

    `error` holds the named contract error (e.g. FeeTooHigh) that caused it.
    """

    def __init__(
        self,
        *,
        tx_hash: str,
        receipt: Optional[dict],
        msg: str,
        error: Optional[ContractRevert] = None,
        budget_block: Optional[dict] = None,
    ) -> None:
        super().__init__(msg)
        self.tx_hash = tx_hash
        self.receipt = receipt
        self.error = error
        self.budget_block = budget_block

    @property
    def error_name(self) -> Optional[str]:
        return self.error.name if self.error is not None else None


class TransactionBudgetExceededError(Exception):
    """
    Raised BEFORE execution when the padded gas limit exceeds the caller's budget.
    Nothing is executed on the ledger.
    """

    def __init__(self, *, est_gas_limit: int, gas_budget: int) -> None:
        super().__init__(
            f"Estimated gas limit {est_gas_limit} exceeds budget {gas_budget}; transaction not sent."
        )
        self.est_gas_limit = int(est_gas_limit)
        self.gas_budget = int(gas_budget)

    def as_dict(self) -> dict[str, Any]:
        return {"est_gas_limit": self.est_gas_limit, "gas_budget": self.gas_budget}
