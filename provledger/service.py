"""
Write and read paths, and the set/get dispatch shell.

Write: decode args -> build every PROV document -> put each one.
All documents are built before the first put, so argument and timestamp
errors never leave a partial write behind. A store failure on a segment put
does leave the earlier puts committed; there is no rollback.

Read: current value + history -> base64 envelope.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from .errors import ProvLedgerError, UnknownFunctionError
from .history import aggregate
from .ledger.store import LedgerStore
from .models import WriteRequest
from .prov.graph import build_primary, build_segment
from .prov.serializer import serialize_bytes
from .request import decode_write_args

logger = logging.getLogger(__name__)

SUCCESS_TOKEN = "PROCESSED_OK"
INIT_TOKEN = "INITIALIZATION_DONE"

# Response status codes
OK = 200
ERROR = 500

FN_SET = "set"
FN_GET = "get"

# Kinds of document written by one set call
DOCUMENT = "document"
SEGMENT = "segment"


@dataclass(frozen=True)
class Response:
    """Outcome of a dispatched call: a payload on success, a message on failure."""

    status: int
    payload: bytes = b""
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK

    @classmethod
    def success(cls, payload: bytes | str) -> Response:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        return cls(status=OK, payload=payload)

    @classmethod
    def error(cls, message: str) -> Response:
        return cls(status=ERROR, message=message)


@dataclass(frozen=True)
class WrittenDocument:
    """One put made by a set call."""

    key: str
    kind: str  # DOCUMENT or SEGMENT
    tx_id: str

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "kind": self.kind, "tx_id": self.tx_id}


@dataclass(frozen=True)
class WriteResult:
    """
    Every put of one set call, in order, primary first.

    A key repeated in the request appears once per put.
    """

    request: WriteRequest
    writes: tuple[WrittenDocument, ...] = field(default_factory=tuple)

    @property
    def keys(self) -> list[str]:
        return [w.key for w in self.writes]

    def to_dict(self) -> dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "writes": [w.to_dict() for w in self.writes],
        }


def build_documents(request: WriteRequest) -> list[tuple[str, str, bytes]]:
    """
    Serialize the primary document and one document per segment.

    Returns (key, kind, document) triples in put order.

    Raises:
        TimestampFormatError: request.date is not YYYY-MM-DDTHH:MM:SS.sssZ.
        ArgumentError: the agent id reuses a fixed node id.
    """
    primary = build_primary(request.content_hash, request.agent, request.action, request.date)
    documents = [(request.content_hash, DOCUMENT, serialize_bytes(primary))]
    for digest in request.segment_hashes:
        record = build_segment(digest, request.content_hash, request.agent, request.action, request.date)
        documents.append((digest, SEGMENT, serialize_bytes(record)))
    return documents


def write(store: LedgerStore, args: Sequence[str]) -> WriteResult:
    """
    Store provenance for a content hash and each of its segments.

    Raises:
        ArgumentError, TimestampFormatError: before any put.
        StoreError: a put failed; earlier puts of this call stay committed.
    """
    request = decode_write_args(args)
    documents = build_documents(request)

    writes: list[WrittenDocument] = []
    for key, kind, document in documents:
        tx_id = store.put(key, document)
        logger.info("Stored %s provenance for %s (tx %s)", kind, key, tx_id)
        writes.append(WrittenDocument(key=key, kind=kind, tx_id=tx_id))
    return WriteResult(request=request, writes=tuple(writes))


def read(store: LedgerStore, key: str) -> str:
    """
    Base64 envelope of the current document of key and its history.

    Raises:
        NotFoundError, StoreError
    """
    return aggregate(store, key).encode()


class ProvenanceContract:
    """
    Routes set/get calls onto a ledger.

    Every ProvLedgerError becomes Response.error with a plain message;
    nothing else crosses the boundary.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def init(self) -> Response:
        logger.info("Starting the provenance contract. No initialization is necessary")
        return Response.success(INIT_TOKEN)

    def invoke(self, function: str, args: Sequence[str] | None) -> Response:
        logger.info("Invocation of %r with %d argument(s)", function, len(args or ()))
        if not args:
            return Response.error("No arguments passed")
        try:
            if function == FN_SET:
                write(self.store, args)
                return Response.success(SUCCESS_TOKEN)
            if function == FN_GET:
                payload = read(self.store, args[0])
                return Response.success(json.dumps({"Provenance": payload}))
            raise UnknownFunctionError(f"Unknown function {function!r}; expected 'set' or 'get'")
        except ProvLedgerError as exc:
            logger.error("%s failed: %s", function, exc)
            return Response.error(str(exc))

    def call(self, argv: Sequence[str]) -> Response:
        """Dispatch a flat [function, *args] list."""
        if not argv:
            return Response.error("No function passed")
        return self.invoke(argv[0], list(argv[1:]))
