"""
Ledger facade contract.

The core only needs three operations from a ledger: get the current value
of a key, put a new value, and walk the version history of a key. History
is returned as a HistoryCursor, a one-shot iterator that owns a resource
and must be closed; use it as a context manager.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Protocol, runtime_checkable

from ..errors import HistoryUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerTimestamp:
    """Commit time of a version, as seconds plus nanoseconds since the epoch."""

    seconds: int
    nanos: int = 0

    @classmethod
    def now(cls) -> LedgerTimestamp:
        ns = time.time_ns()
        return cls(seconds=ns // 1_000_000_000, nanos=ns % 1_000_000_000)

    def format(self) -> str:
        """
        Render as 'YYYY-MM-DD HH:MM:SS[.fraction] +0000 UTC'.

        The fraction keeps nanosecond precision with trailing zeros trimmed
        and is omitted entirely when zero.
        """
        base = datetime.fromtimestamp(self.seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        fraction = f"{self.nanos:09d}".rstrip("0")
        if fraction:
            base += "." + fraction
        return base + " +0000 UTC"

    def to_dict(self) -> dict[str, int]:
        return {"seconds": self.seconds, "nanos": self.nanos}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerTimestamp:
        return cls(seconds=int(data["seconds"]), nanos=int(data.get("nanos", 0)))


@dataclass(frozen=True)
class HistoryEntry:
    """One version of a key, as returned by the ledger."""

    tx_id: str
    value: bytes | None  # None (or meaningless) for deletes
    timestamp: LedgerTimestamp
    is_delete: bool = False


class HistoryCursor:
    """
    One-shot iterator over HistoryEntry values that owns a resource.

    close() releases the resource exactly once; later calls are no-ops.
    Iterating a closed cursor raises HistoryUnavailable.

        with store.history_of(key) as cursor:
            for entry in cursor:
                ...
    """

    def __init__(
        self,
        entries: Iterator[HistoryEntry],
        on_close: Callable[[], None] | None = None,
    ):
        self._entries = entries
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> HistoryCursor:
        return self

    def __next__(self) -> HistoryEntry:
        if self._closed:
            raise HistoryUnavailable("History cursor is closed")
        return next(self._entries)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close_entries = getattr(self._entries, "close", None)
        if close_entries is not None:
            close_entries()
        if self._on_close is not None:
            self._on_close()
        logger.debug("History cursor closed")

    def __enter__(self) -> HistoryCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@runtime_checkable
class LedgerStore(Protocol):
    """Versioned key/value ledger consumed by the write and read paths."""

    def get(self, key: str) -> bytes | None:
        """Current value of key, or None when absent or deleted. Raises StoreError."""
        ...

    def put(self, key: str, value: bytes) -> str:
        """Record a new version of key and return its transaction id. Raises StoreError."""
        ...

    def delete(self, key: str) -> str:
        """Record a delete version of key and return its transaction id. Raises StoreError."""
        ...

    def history_of(self, key: str) -> HistoryCursor:
        """All versions of key, oldest first. Raises StoreError or HistoryUnavailable."""
        ...
