"""
Transaction id generation.

A transaction id is the hex SHA-256 of a random nonce followed by the key,
the value (empty for deletes) and the commit time of the version. Ids are
opaque: ledger order is file/list order, never id order.
"""

from __future__ import annotations

import hashlib
import os

from .store import LedgerTimestamp

NONCE_SIZE = 24


def new_tx_id(
    key: str,
    value: bytes | None,
    timestamp: LedgerTimestamp,
    *,
    nonce: bytes | None = None,
) -> str:
    """Transaction id for one version of key (64 lowercase hex chars)."""
    if nonce is None:
        nonce = os.urandom(NONCE_SIZE)
    digest = hashlib.sha256(nonce)
    digest.update(key.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(value or b"")
    digest.update(f"{timestamp.seconds}.{timestamp.nanos:09d}".encode("ascii"))
    return digest.hexdigest()
