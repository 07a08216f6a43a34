import base64
import json

import pytest

from conftest import CONTENT_HASH, make_args
from provledger.errors import ArgumentError, NotFoundError, StoreError, TimestampFormatError
from provledger.history import CombinedEnvelope
from provledger.ledger.file_store import FileLedger
from provledger.ledger.memory import MemoryLedger
from provledger.prov.serializer import parse_document
from provledger.request import decode_write_args
from provledger.service import (
    ERROR,
    INIT_TOKEN,
    OK,
    SUCCESS_TOKEN,
    ProvenanceContract,
    build_documents,
    read,
    write,
)


class _FailingStore(MemoryLedger):
    """Memory ledger whose Nth put raises."""

    def __init__(self, fail_on: int):
        super().__init__()
        self.fail_on = fail_on
        self.puts = 0

    def put(self, key: str, value: bytes) -> str:
        self.puts += 1
        if self.puts == self.fail_on:
            raise StoreError(f"put of {key} rejected")
        return super().put(key, value)


def test_write_then_read_returns_stored_document(memory_store: MemoryLedger, valid_args: list[str]) -> None:
    result = write(memory_store, valid_args)

    assert result.keys == [CONTENT_HASH]
    envelope = CombinedEnvelope.decode(read(memory_store, CONTENT_HASH))
    assert envelope.original == memory_store.get(CONTENT_HASH)

    record = parse_document(envelope.original)
    assert record.activity.type == "ex:CREATE"
    assert record.content_hash == CONTENT_HASH
    assert len(envelope.history) == 1
    assert envelope.history[0].tx_id == result.writes[0].tx_id


def test_build_documents_matches_stored_bytes(memory_store: MemoryLedger, valid_args: list[str]) -> None:
    documents = build_documents(decode_write_args(valid_args))
    write(memory_store, valid_args)

    assert documents == [(CONTENT_HASH, "document", memory_store.get(CONTENT_HASH))]


def test_short_argument_list_writes_nothing(memory_store: MemoryLedger, valid_args: list[str]) -> None:
    with pytest.raises(ArgumentError):
        write(memory_store, valid_args[:15])

    assert memory_store.keys() == []


def test_bad_timestamp_writes_nothing(memory_store: MemoryLedger) -> None:
    args = make_args(date="2018-11-10 12:15:55", segments=[("digest1", "SEG1")])

    with pytest.raises(TimestampFormatError):
        write(memory_store, args)

    assert memory_store.keys() == []


def test_segments_get_their_own_documents(memory_store: MemoryLedger) -> None:
    args = make_args(segments=[("digest1", "SEG1"), ("digest2", "SEG2")])

    result = write(memory_store, args)

    assert result.keys == [CONTENT_HASH, "SEG1", "SEG2"]
    for digest in ("SEG1", "SEG2"):
        record = parse_document(memory_store.get(digest))
        assert record.is_segment
        assert record.content_hash == CONTENT_HASH
        assert record.entity("thesegment").value == digest
        values = {e.value for e in record.entities}
        assert values == {digest, CONTENT_HASH}


def test_trailing_unpaired_argument_is_ignored(memory_store: MemoryLedger) -> None:
    args = make_args(segments=[("digest1", "SEG1")]) + ["digest2"]

    result = write(memory_store, args)

    assert result.keys == [CONTENT_HASH, "SEG1"]


def test_rewrite_extends_history(memory_store: MemoryLedger) -> None:
    write(memory_store, make_args(action="ex:CREATE"))
    write(memory_store, make_args(action="ex:UPDATE"))

    envelope = CombinedEnvelope.decode(read(memory_store, CONTENT_HASH))

    assert len(envelope.history) == 2
    assert envelope.history[-1].decoded_value() == envelope.original
    assert parse_document(envelope.history[0].decoded_value()).activity.type == "ex:CREATE"
    assert parse_document(envelope.original).activity.type == "ex:UPDATE"


def test_read_unknown_key(memory_store: MemoryLedger) -> None:
    with pytest.raises(NotFoundError, match="Hash not found: missing"):
        read(memory_store, "missing")


def test_segment_put_failure_keeps_earlier_puts() -> None:
    store = _FailingStore(fail_on=2)
    args = make_args(segments=[("digest1", "SEG1"), ("digest2", "SEG2")])

    with pytest.raises(StoreError, match="SEG1"):
        write(store, args)

    assert store.keys() == [CONTENT_HASH]


def test_contract_init() -> None:
    response = ProvenanceContract(MemoryLedger()).init()

    assert response.ok
    assert response.payload == INIT_TOKEN.encode()


def test_contract_set_and_get(memory_store: MemoryLedger, valid_args: list[str]) -> None:
    contract = ProvenanceContract(memory_store)

    set_response = contract.invoke("set", valid_args)
    get_response = contract.invoke("get", [CONTENT_HASH])

    assert set_response.status == OK
    assert set_response.payload == SUCCESS_TOKEN.encode()
    assert get_response.ok
    payload = json.loads(get_response.payload)["Provenance"]
    data = json.loads(base64.b64decode(payload))
    assert base64.b64decode(data["Original"]) == memory_store.get(CONTENT_HASH)


@pytest.mark.parametrize(
    ("function", "args", "message"),
    [
        ("set", [], "No arguments passed"),
        ("get", [], "No arguments passed"),
        ("set", ["H1", "agentInfo.atype"], "Invalid number of parameters"),
        ("get", ["missing"], "Hash not found: missing"),
        ("query", ["H1"], "Unknown function"),
    ],
)
def test_contract_errors(function: str, args: list[str], message: str) -> None:
    response = ProvenanceContract(MemoryLedger()).invoke(function, args)

    assert response.status == ERROR
    assert not response.ok
    assert message in response.message
    assert response.payload == b""


def test_contract_call_splits_function_name(memory_store: MemoryLedger, valid_args: list[str]) -> None:
    contract = ProvenanceContract(memory_store)

    assert contract.call(["set", *valid_args]).ok
    assert contract.call(["get", CONTENT_HASH]).ok
    assert not contract.call([]).ok


def test_contract_reports_unreadable_ledger(file_store: FileLedger, valid_args: list[str]) -> None:
    contract = ProvenanceContract(file_store)
    assert contract.invoke("set", valid_args).ok
    with file_store.ledger_path.open("ab") as f:
        f.write(b"\xff\xfe garbage\n")

    response = contract.invoke("get", [CONTENT_HASH])

    assert response.status == ERROR
    assert "Undecodable ledger data" in response.message


def test_repeated_keys_are_reported_once_per_put(memory_store: MemoryLedger) -> None:
    args = make_args("H1", segments=[("digest1", "SEG"), ("digest2", "SEG"), ("digest3", "H1")])

    result = write(memory_store, args)

    assert [(w.key, w.kind) for w in result.writes] == [
        ("H1", "document"),
        ("SEG", "segment"),
        ("SEG", "segment"),
        ("H1", "segment"),
    ]
    assert len({w.tx_id for w in result.writes}) == 4
    with memory_store.history_of("SEG") as cursor:
        assert [e.tx_id for e in cursor] == [result.writes[1].tx_id, result.writes[2].tx_id]


def test_agent_id_colliding_with_node_id_writes_nothing(memory_store: MemoryLedger) -> None:
    args = make_args(segments=[("digest1", "SEG1")])
    args[4] = "theobject"

    response = ProvenanceContract(memory_store).invoke("set", args)

    assert response.status == ERROR
    assert "collides" in response.message
    assert memory_store.keys() == []
