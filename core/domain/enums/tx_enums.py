from __future__ import annotations

from enum import StrEnum


class GasStrategy(StrEnum):
    """
    Gas limit padding applied by TxService on top of the ledger's estimate.
    """

    DEFAULT = "default"
    BUFFERED = "buffered"
    AGGRESSIVE = "aggressive"
