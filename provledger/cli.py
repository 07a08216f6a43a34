"""CLI entrypoint for provledger."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import Settings


def configure_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="provledger")
@click.option(
    "--ledger",
    "-l",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Ledger directory (defaults to $PROVLEDGER_DIR or an auto-detected .provledger)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (defaults to $PROVLEDGER_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, ledger: Path | None, log_level: str | None) -> None:
    """provledger - PROV provenance records on a versioned ledger.

    Store provenance documents for content hashes and read them back
    together with their version history.
    """
    ctx.ensure_object(dict)
    settings = Settings.from_env(ledger, log_level=log_level)
    if settings.ledger_dir.exists() and not settings.ledger_dir.is_dir():
        raise click.BadParameter(f"'{settings.ledger_dir}' is not a directory.", param_hint="--ledger / -l")
    configure_logging(settings.log_level)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the ledger directory."""
    from .commands.record_cmd import run_init

    sys.exit(run_init(ctx.obj["settings"]))


@cli.command("set", context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def set_(ctx: click.Context, args: tuple[str, ...], output_json: bool) -> None:
    """Store provenance for a content hash (and its segments).

    ARGS is the positional name/value list:

    \b
        HASH agentInfo.atype T agentInfo.id ID agentInfo.name NAME
        agentInfo.idp IDP location.id LID location.name LNAME
        location.locality LOC location.docid DOCID action ACTION
        date YYYY-MM-DDTHH:MM:SS.sssZ [digest1 SEGHASH1 ...]

    Examples:

        provledger set H1 agentInfo.atype 1.2.3.4 agentInfo.id A1 ... date 2018-11-10T12:15:55.028Z
    """
    from .commands.record_cmd import run_record_set

    sys.exit(run_record_set(ctx.obj["settings"], list(args), output_json=output_json))


@cli.command()
@click.argument("key")
@click.option("--decoded", is_flag=True, help="Print the decoded envelope instead of the base64 payload")
@click.pass_context
def get(ctx: click.Context, key: str, decoded: bool) -> None:
    """Read the provenance document of KEY with its history."""
    from .commands.record_cmd import run_record_get

    sys.exit(run_record_get(ctx.obj["settings"], key, decoded=decoded))


@cli.command()
@click.argument("key")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history(ctx: click.Context, key: str, output_json: bool) -> None:
    """List every ledger version of KEY, oldest first."""
    from .commands.record_cmd import run_record_history

    sys.exit(run_record_history(ctx.obj["settings"], key, output_json=output_json))


@cli.command()
@click.argument("key")
@click.option("--xml", is_flag=True, help="Print the stored PROV-XML as is")
@click.pass_context
def show(ctx: click.Context, key: str, xml: bool) -> None:
    """Show the nodes and relations of the current document of KEY."""
    from .commands.record_cmd import run_record_show

    sys.exit(run_record_show(ctx.obj["settings"], key, xml=xml))


@cli.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Record a delete version for KEY (history is kept)."""
    from .commands.record_cmd import run_record_delete

    sys.exit(run_record_delete(ctx.obj["settings"], key))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("function", type=click.Choice(["set", "get"]))
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def invoke(ctx: click.Context, function: str, args: tuple[str, ...]) -> None:
    """Dispatch FUNCTION with ARGS exactly as the set/get contract does."""
    from .config import open_store
    from .service import ProvenanceContract

    response = ProvenanceContract(open_store(ctx.obj["settings"])).invoke(function, list(args))
    if not response.ok:
        Console(stderr=True).print(response.message, style="bold red", markup=False)
        sys.exit(1)
    click.echo(response.payload.decode("utf-8"))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
