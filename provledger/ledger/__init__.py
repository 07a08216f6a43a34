"""
Versioned key/value ledger.

Components:
- store: the facade contract (LedgerStore, HistoryCursor, HistoryEntry)
- file_store: append-only JSON Lines backend
- memory: in-memory backend

Design principles:
- Append-only: a put or delete adds a version, nothing is rewritten
- History is a scoped cursor, closed exactly once
"""

from .file_store import FileLedger
from .memory import MemoryLedger
from .store import HistoryCursor, HistoryEntry, LedgerStore, LedgerTimestamp
from .util import new_tx_id

__all__ = [
    "FileLedger",
    "MemoryLedger",
    "HistoryCursor",
    "HistoryEntry",
    "LedgerStore",
    "LedgerTimestamp",
    "new_tx_id",
]
