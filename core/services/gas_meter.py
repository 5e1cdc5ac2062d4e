from __future__ import annotations

from dataclasses import dataclass

from core.services.exceptions import OutOfGas

TX_BASE_GAS = 21_000
SLOAD_GAS = 2_100
SSTORE_SET_GAS = 20_000
SSTORE_RESET_GAS = 2_900
LOG_GAS = 375
LOG_DATA_GAS = 375
CALL_GAS = 2_600
CREATE_GAS = 32_000


@dataclass
class GasMeter:
    """
    Per-transaction gas accounting.

    Every storage access, event, nested call and contract creation is charged
    against `limit`; crossing it raises OutOfGas, which reverts the transaction.
    """

    limit: int
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    def charge(self, amount: int) -> None:
        self.used += int(amount)
        if self.used > self.limit:
            raise OutOfGas(self.limit, self.used)

    def charge_sstore(self, was_empty: bool) -> None:
        self.charge(SSTORE_SET_GAS if was_empty else SSTORE_RESET_GAS)

    def charge_log(self, n_args: int) -> None:
        self.charge(LOG_GAS + LOG_DATA_GAS * int(n_args))
