"""
History aggregation for the read path.

A read returns the current value of a key merged with every ledger version
of it. The current value is mandatory; history is best effort. When the
history query fails the envelope still carries the current value and the
sentinel "NO_HISTORY_AVAILABLE" in place of the version list.

Payload shape (base64 of this JSON):

    {"Original": "<base64>",
     "History": [{"TxId": ..., "Value": "<base64>" | null,
                  "Timestamp": ..., "IsDelete": "true" | "false"}, ...]
                | "NO_HISTORY_AVAILABLE"}
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any

from .errors import HistoryUnavailable, NotFoundError, StoreError
from .ledger.store import HistoryEntry, LedgerStore

logger = logging.getLogger(__name__)

NO_HISTORY_AVAILABLE = "NO_HISTORY_AVAILABLE"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True)
class HistoryRecord:
    """One ledger version as rendered in a read response."""

    tx_id: str
    value: str | None  # base64; None for deletes
    timestamp: str
    is_delete: bool

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> HistoryRecord:
        value = None if entry.is_delete or entry.value is None else _b64(entry.value)
        return cls(
            tx_id=entry.tx_id,
            value=value,
            timestamp=entry.timestamp.format(),
            is_delete=entry.is_delete,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "TxId": self.tx_id,
            "Value": self.value,
            "Timestamp": self.timestamp,
            "IsDelete": "true" if self.is_delete else "false",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryRecord:
        return cls(
            tx_id=data["TxId"],
            value=data.get("Value"),
            timestamp=data["Timestamp"],
            is_delete=str(data.get("IsDelete", "false")).lower() == "true",
        )

    def decoded_value(self) -> bytes | None:
        return None if self.value is None else base64.b64decode(self.value)


@dataclass(frozen=True)
class HistoryResult:
    """
    Outcome of a history query.

    Either records is a tuple (possibly empty), or records is None and
    error says why the history could not be read.
    """

    records: tuple[HistoryRecord, ...] | None
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.records is not None

    @classmethod
    def unavailable(cls, error: str) -> HistoryResult:
        return cls(records=None, error=error)


@dataclass(frozen=True)
class CombinedEnvelope:
    """Current value of a key plus its version history."""

    original: bytes
    history: tuple[HistoryRecord, ...] | None
    history_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        history: Any = NO_HISTORY_AVAILABLE
        if self.history is not None:
            history = [r.to_dict() for r in self.history]
        return {"Original": _b64(self.original), "History": history}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def encode(self) -> str:
        """Base64 of the JSON form; the transport payload of a read."""
        return _b64(self.to_json().encode("utf-8"))

    @classmethod
    def decode(cls, payload: str | bytes) -> CombinedEnvelope:
        """
        Parse a payload produced by encode().

        Raises:
            ValueError: payload is not base64 JSON of the expected shape.
        """
        try:
            data = json.loads(base64.b64decode(payload, validate=True))
            original = base64.b64decode(data["Original"])
        except (ValueError, KeyError, TypeError) as exc:
            raise ValueError(f"Malformed read payload: {exc}") from exc

        raw_history = data.get("History")
        if raw_history == NO_HISTORY_AVAILABLE or raw_history is None:
            return cls(original=original, history=None, history_error=NO_HISTORY_AVAILABLE)
        return cls(
            original=original,
            history=tuple(HistoryRecord.from_dict(r) for r in raw_history),
        )


def collect_history(store: LedgerStore, key: str) -> HistoryResult:
    """
    Read every version of key, oldest first.

    Failures of the query are returned as an unavailable result, never
    raised. The cursor is closed on every path.
    """
    try:
        cursor = store.history_of(key)
    except (StoreError, HistoryUnavailable) as exc:
        logger.warning("No history found for %s, continuing without it: %s", key, exc)
        return HistoryResult.unavailable(str(exc))

    records: list[HistoryRecord] = []
    with cursor:
        try:
            for entry in cursor:
                records.append(HistoryRecord.from_entry(entry))
        except (StoreError, HistoryUnavailable) as exc:
            logger.warning("Unable to iterate over history of %s: %s", key, exc)
            return HistoryResult.unavailable(str(exc))

    logger.debug("Collected %d history record(s) for %s", len(records), key)
    return HistoryResult(records=tuple(records))


def aggregate(store: LedgerStore, key: str) -> CombinedEnvelope:
    """
    Merge the current value of key with its history.

    Raises:
        NotFoundError: key has no current value (history is not queried).
        StoreError: reading the current value failed.
    """
    logger.info("Searching %s", key)
    value = store.get(key)
    if value is None:
        raise NotFoundError(key)

    result = collect_history(store, key)
    return CombinedEnvelope(original=value, history=result.records, history_error=result.error)
