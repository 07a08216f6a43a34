"""Provenance record CLI commands."""

from __future__ import annotations

import json
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import Settings, open_store
from ..errors import DocumentFormatError, ProvLedgerError
from ..history import CombinedEnvelope, aggregate
from ..ledger.store import LedgerStore
from ..prov.serializer import parse_document
from ..service import INIT_TOKEN, SUCCESS_TOKEN, read, write


def _store(settings: Settings) -> LedgerStore:
    return open_store(settings)


def run_init(settings: Settings) -> int:
    console = Console()
    settings.ledger_dir.mkdir(parents=True, exist_ok=True)
    console.print(INIT_TOKEN)
    console.print(f"  ledger: {escape(str(settings.ledger_dir))}", style="dim")
    return 0


def run_record_set(settings: Settings, args: Sequence[str], *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        result = write(_store(settings), args)
    except ProvLedgerError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1

    if output_json:
        print(json.dumps({"result": SUCCESS_TOKEN, **result.to_dict()}, indent=2))
        return 0

    console.print(SUCCESS_TOKEN)
    table = Table(title="Written")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("kind", style="magenta")
    table.add_column("tx_id", style="dim")
    for written in result.writes:
        table.add_row(escape(written.key), written.kind, written.tx_id)
    console.print(table)
    return 0


def run_record_get(settings: Settings, key: str, *, decoded: bool = False) -> int:
    err = Console(stderr=True)
    try:
        payload = read(_store(settings), key)
    except ProvLedgerError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1

    if decoded:
        print(json.dumps(CombinedEnvelope.decode(payload).to_dict(), indent=2))
    else:
        print(json.dumps({"Provenance": payload}))
    return 0


def run_record_history(settings: Settings, key: str, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        envelope = aggregate(_store(settings), key)
    except ProvLedgerError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1

    if output_json:
        print(json.dumps(envelope.to_dict()["History"], indent=2))
        return 0

    if envelope.history is None:
        console.print(f"No history available for {escape(key)}", style="yellow")
        if envelope.history_error:
            console.print(f"  {escape(envelope.history_error)}", style="dim")
        return 0

    table = Table(title=escape(f"History of {key}"))
    table.add_column("#", justify="right")
    table.add_column("tx_id", style="cyan", no_wrap=True)
    table.add_column("timestamp")
    table.add_column("delete")
    table.add_column("bytes", justify="right")
    for i, record in enumerate(envelope.history, start=1):
        value = record.decoded_value()
        table.add_row(
            str(i),
            record.tx_id,
            record.timestamp,
            "yes" if record.is_delete else "",
            "" if value is None else str(len(value)),
        )
    console.print(table)
    return 0


def run_record_show(settings: Settings, key: str, *, xml: bool = False) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        value = _store(settings).get(key)
    except ProvLedgerError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1
    if value is None:
        err.print(f"Hash not found: {escape(key)}", style="bold red")
        return 1

    if xml:
        print(value.decode("utf-8"))
        return 0

    try:
        record = parse_document(value)
    except DocumentFormatError as exc:
        err.print(escape(f"Stored value for {key} is not a PROV document: {exc}"), style="bold red")
        return 1

    console.print(f"[bold]{escape(key)}[/bold] ({'segment' if record.is_segment else 'document'})")
    nodes = Table(title="Nodes")
    nodes.add_column("kind", style="magenta")
    nodes.add_column("id", style="cyan")
    nodes.add_column("details")
    for entity in record.entities:
        nodes.add_row("entity", entity.id, escape(f"{entity.label} ({entity.type}) {entity.value}"))
    nodes.add_row("activity", record.activity.id, escape(record.activity.type))
    agent = record.agent
    nodes.add_row("agent", escape(agent.id), escape(f"{agent.name} ({agent.type}, {agent.identity_provider})"))
    console.print(nodes)

    edges = Table(title="Relations")
    edges.add_column("relation", style="magenta")
    edges.add_column("from", style="cyan")
    edges.add_column("to", style="cyan")
    edges.add_column("time", style="dim")
    for rel in record.relations:
        edges.add_row(rel.kind, escape(rel.source), escape(rel.target), rel.time or "")
    console.print(edges)
    return 0


def run_record_delete(settings: Settings, key: str) -> int:
    err = Console(stderr=True)
    console = Console()
    store = _store(settings)
    try:
        if store.get(key) is None:
            err.print(f"Hash not found: {escape(key)}", style="bold red")
            return 1
        tx_id = store.delete(key)
    except ProvLedgerError as exc:
        err.print(escape(str(exc)), style="bold red")
        return 1
    console.print(f"Deleted {escape(key)} (tx {tx_id})")
    return 0
