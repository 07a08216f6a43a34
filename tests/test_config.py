from pathlib import Path

from provledger.config import (
    DEFAULT_LOG_LEVEL,
    LEDGER_DIRNAME,
    Settings,
    auto_detect_ledger_dir,
    open_store,
)
from provledger.ledger.file_store import FileLedger


def test_explicit_path_wins(tmp_path: Path) -> None:
    explicit = tmp_path / "explicit"
    settings = Settings.from_env(explicit, environ={"PROVLEDGER_DIR": str(tmp_path / "env")}, cwd=tmp_path)

    assert settings.ledger_dir == explicit.resolve()


def test_environment_path(tmp_path: Path) -> None:
    settings = Settings.from_env(environ={"PROVLEDGER_DIR": str(tmp_path / "env")}, cwd=tmp_path)

    assert settings.ledger_dir == (tmp_path / "env").resolve()


def test_auto_detects_parent_ledger(tmp_path: Path) -> None:
    (tmp_path / LEDGER_DIRNAME).mkdir()
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert auto_detect_ledger_dir(nested) == (tmp_path / LEDGER_DIRNAME).resolve()
    assert Settings.from_env(environ={}, cwd=nested).ledger_dir == (tmp_path / LEDGER_DIRNAME).resolve()


def test_defaults_to_working_directory(tmp_path: Path) -> None:
    settings = Settings.from_env(environ={}, cwd=tmp_path)

    assert settings.ledger_dir == (tmp_path / LEDGER_DIRNAME).resolve()
    assert settings.log_level == DEFAULT_LOG_LEVEL


def test_log_level_resolution(tmp_path: Path) -> None:
    from_env = Settings.from_env(environ={"PROVLEDGER_LOG_LEVEL": "debug"}, cwd=tmp_path)
    explicit = Settings.from_env(log_level="info", environ={"PROVLEDGER_LOG_LEVEL": "debug"}, cwd=tmp_path)

    assert from_env.log_level == "DEBUG"
    assert explicit.log_level == "INFO"


def test_open_store(tmp_path: Path) -> None:
    store = open_store(Settings(ledger_dir=tmp_path))

    assert isinstance(store, FileLedger)
    assert store.ledger_dir == tmp_path
