"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from provledger.ledger.file_store import FileLedger
from provledger.ledger.memory import MemoryLedger
from provledger.models import Agent

CONTENT_HASH = "S52fkpF2rCEArSuwqyDA9tVjawUdrkGzbNQLaa7xJfA="
GENERATION_TIME = "2018-11-10T12:15:55.028Z"


def make_args(
    content_hash: str = CONTENT_HASH,
    *,
    action: str = "ex:CREATE",
    date: str = GENERATION_TIME,
    segments: list[tuple[str, str]] | None = None,
) -> list[str]:
    """Positional write arguments as a client would send them."""
    args = [
        content_hash,
        "agentInfo.atype", "1.2.3.4",
        "agentInfo.id", "agentidentifier",
        "agentinfo.name", "7.8.9",
        "agentinfo.idp", "urn:tiani-spirit:sts",
        "locationInfo.id", "urn:oid:1.2.3",
        "locationInfo.name", "General Hospital",
        "locationInfo.locality", "Nashville, TN",
        "locationInfo.docid", "1.2.3",
        "action", action,
        "date", date,
    ]
    for label, digest in segments or []:
        args.extend([label, digest])
    return args


@pytest.fixture
def valid_args() -> list[str]:
    return make_args()


@pytest.fixture
def agent() -> Agent:
    return Agent(type="1.2.3.4", id="A1", name="Dr X", identity_provider="urn:idp")


@pytest.fixture
def memory_store() -> MemoryLedger:
    return MemoryLedger()


@pytest.fixture
def file_store(tmp_path: Path) -> FileLedger:
    return FileLedger(tmp_path / ".provledger")
