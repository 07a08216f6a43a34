"""
Runtime configuration.

The ledger directory is resolved from, in order:
- an explicit path (the --ledger CLI option)
- the PROVLEDGER_DIR environment variable
- a .provledger directory found by walking up from the working directory
- ./.provledger
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .ledger.file_store import FileLedger

LEDGER_DIRNAME = ".provledger"
ENV_LEDGER_DIR = "PROVLEDGER_DIR"
ENV_LOG_LEVEL = "PROVLEDGER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def auto_detect_ledger_dir(start: Path) -> Path | None:
    """Find a .provledger folder by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / LEDGER_DIRNAME
        if candidate.is_dir():
            return candidate
    return None


@dataclass(frozen=True)
class Settings:
    ledger_dir: Path
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        ledger_dir: Path | None = None,
        *,
        log_level: str | None = None,
        environ: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> Settings:
        env = os.environ if environ is None else environ
        cwd = cwd or Path.cwd()

        if ledger_dir is None and env.get(ENV_LEDGER_DIR):
            ledger_dir = Path(env[ENV_LEDGER_DIR])
        if ledger_dir is None:
            ledger_dir = auto_detect_ledger_dir(cwd) or cwd / LEDGER_DIRNAME

        level = (log_level or env.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
        return cls(ledger_dir=ledger_dir.expanduser().resolve(), log_level=level)


def open_store(settings: Settings) -> FileLedger:
    return FileLedger(settings.ledger_dir)
