"""In-memory ledger, for tests and embedding."""

from __future__ import annotations

from .store import HistoryCursor, HistoryEntry, LedgerTimestamp
from .util import new_tx_id


class MemoryLedger:
    """Versioned key/value ledger held in a dict of version lists."""

    def __init__(self) -> None:
        self._versions: dict[str, list[HistoryEntry]] = {}
        self.open_cursors = 0

    def _record(self, key: str, value: bytes | None, *, is_delete: bool = False) -> str:
        timestamp = LedgerTimestamp.now()
        entry = HistoryEntry(
            tx_id=new_tx_id(key, value, timestamp),
            value=value,
            timestamp=timestamp,
            is_delete=is_delete,
        )
        self._versions.setdefault(key, []).append(entry)
        return entry.tx_id

    def put(self, key: str, value: bytes) -> str:
        return self._record(key, bytes(value))

    def delete(self, key: str) -> str:
        return self._record(key, None, is_delete=True)

    def get(self, key: str) -> bytes | None:
        versions = self._versions.get(key)
        if not versions or versions[-1].is_delete:
            return None
        return versions[-1].value

    def history_of(self, key: str) -> HistoryCursor:
        self.open_cursors += 1
        return HistoryCursor(iter(list(self._versions.get(key, []))), on_close=self._release)

    def _release(self) -> None:
        self.open_cursors -= 1

    def keys(self) -> list[str]:
        return [k for k, v in self._versions.items() if v and not v[-1].is_delete]
