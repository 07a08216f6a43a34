"""
Append-only file ledger.

Stores every version of every key in <ledger_dir>/ledger.jsonl, one JSON
object per line:

    {"tx_id": ..., "key": ..., "value": <base64> | null,
     "timestamp": {"seconds": ..., "nanos": ...}, "is_delete": false}

Key property: lines are only ever appended. A put or delete adds a version;
the current value of a key is its last version.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import IO, Any, Iterator

from ..errors import StoreError
from .store import HistoryCursor, HistoryEntry, LedgerTimestamp
from .util import new_tx_id

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "ledger.jsonl"


def _entry_to_dict(key: str, entry: HistoryEntry) -> dict[str, Any]:
    return {
        "tx_id": entry.tx_id,
        "key": key,
        "value": None if entry.value is None else base64.b64encode(entry.value).decode("ascii"),
        "timestamp": entry.timestamp.to_dict(),
        "is_delete": entry.is_delete,
    }


def _entry_from_dict(data: dict[str, Any]) -> HistoryEntry:
    raw = data.get("value")
    return HistoryEntry(
        tx_id=data["tx_id"],
        value=None if raw is None else base64.b64decode(raw),
        timestamp=LedgerTimestamp.from_dict(data["timestamp"]),
        is_delete=bool(data.get("is_delete", False)),
    )


class FileLedger:
    """
    Versioned key/value ledger backed by a JSON Lines file.

    INVARIANT: existing lines are never modified; the only write is an append.
    """

    def __init__(self, ledger_dir: Path):
        """
        Initialize ledger.

        Args:
            ledger_dir: Directory holding ledger.jsonl (created on first write)
        """
        self.ledger_dir = ledger_dir
        self.ledger_path = ledger_dir / LEDGER_FILENAME

    def _ensure_dir(self) -> None:
        self.ledger_dir.mkdir(parents=True, exist_ok=True)

    def _append(self, key: str, entry: HistoryEntry) -> str:
        line = json.dumps(_entry_to_dict(key, entry), separators=(",", ":"))
        try:
            self._ensure_dir()
            with self.ledger_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as exc:
            raise StoreError(f"Failed to write {key}: {exc}") from exc
        return entry.tx_id

    def _iter_lines(self, handle: IO[str], key: str | None = None) -> Iterator[tuple[str, HistoryEntry]]:
        lineno = 0
        while True:
            try:
                line = handle.readline()
            except UnicodeDecodeError as exc:
                raise StoreError(f"Undecodable ledger data after line {lineno} in {self.ledger_path}: {exc}") from exc
            if not line:
                return
            lineno += 1
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
                if key is not None and data.get("key") != key:
                    continue
                item = data["key"], _entry_from_dict(data)
            except (ValueError, KeyError, TypeError, binascii.Error) as exc:
                raise StoreError(f"Corrupt ledger line {lineno} in {self.ledger_path}: {exc}") from exc
            yield item

    # --- Facade operations ---

    def put(self, key: str, value: bytes) -> str:
        """Append a new version of key."""
        value = bytes(value)
        timestamp = LedgerTimestamp.now()
        entry = HistoryEntry(
            tx_id=new_tx_id(key, value, timestamp),
            value=value,
            timestamp=timestamp,
        )
        tx_id = self._append(key, entry)
        logger.debug("put %s (%d bytes) tx=%s", key, len(value), tx_id)
        return tx_id

    def delete(self, key: str) -> str:
        """Append a delete version of key."""
        timestamp = LedgerTimestamp.now()
        entry = HistoryEntry(
            tx_id=new_tx_id(key, None, timestamp),
            value=None,
            timestamp=timestamp,
            is_delete=True,
        )
        tx_id = self._append(key, entry)
        logger.debug("delete %s tx=%s", key, tx_id)
        return tx_id

    def get(self, key: str) -> bytes | None:
        """Value of the last version of key, None if absent or deleted."""
        if not self.ledger_path.exists():
            return None
        latest: HistoryEntry | None = None
        try:
            with self.ledger_path.open("r", encoding="utf-8") as f:
                for _, entry in self._iter_lines(f, key):
                    latest = entry
        except OSError as exc:
            raise StoreError(f"Failed to get document: {key} with error: {exc}") from exc
        if latest is None or latest.is_delete:
            return None
        return latest.value

    def history_of(self, key: str) -> HistoryCursor:
        """
        Cursor over all versions of key, oldest first.

        The cursor holds the ledger file open until it is closed.
        """
        if not self.ledger_path.exists():
            return HistoryCursor(iter(()))
        try:
            handle = self.ledger_path.open("r", encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Failed to open history for {key}: {exc}") from exc

        entries = (entry for _, entry in self._iter_lines(handle, key))
        return HistoryCursor(entries, on_close=handle.close)

    # --- Inspection ---

    def keys(self) -> list[str]:
        """Keys with a current (non-deleted) value, in first-write order."""
        if not self.ledger_path.exists():
            return []
        live: dict[str, bool] = {}
        with self.ledger_path.open("r", encoding="utf-8") as f:
            for key, entry in self._iter_lines(f):
                live[key] = not entry.is_delete
        return [k for k, alive in live.items() if alive]

    def count(self) -> int:
        """Count versions across all keys."""
        if not self.ledger_path.exists():
            return 0
        with self.ledger_path.open("r", encoding="utf-8") as f:
            return sum(1 for _ in self._iter_lines(f))
