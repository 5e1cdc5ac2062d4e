# core/services/ledger_cache.py

from __future__ import annotations

import threading
from typing import Optional

from core.services.ledger import Ledger

_LEDGER: Optional[Ledger] = None
_LOCK = threading.RLock()


def get_ledger() -> Ledger:
    """
    Process-wide ledger instance, built from settings on first use.
    """
    global _LEDGER
    with _LOCK:
        if _LEDGER is None:
            _LEDGER = Ledger.from_settings()
        return _LEDGER


def install_ledger(ledger: Ledger) -> Ledger:
    """
    Replace the process-wide ledger (snapshot restore, tests).
    """
    global _LEDGER
    with _LOCK:
        _LEDGER = ledger
        return ledger


def ledger_lock() -> threading.RLock:
    """
    Lock serializing writers. The HTTP endpoints run ledger work inline on
    the event loop, but scripts and tests may drive the ledger from other
    threads, and the ledger executes one transaction at a time.
    """
    return _LOCK


def reset() -> None:
    global _LEDGER
    with _LOCK:
        _LEDGER = None
