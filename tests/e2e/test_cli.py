"""End-to-end tests for the ``dbcrypt`` command-line interface.

What:
  Invoke the Typer application with :class:`typer.testing.CliRunner` against a
  stand-in engine executable and check exit codes and printed output for the
  ``query`` and ``create`` commands.

Why:
  The CLI is what operators script against. These tests cover option parsing,
  the ``DBCRYPT_KEY`` environment fallback, configuration loading, the real
  subprocess path and the mapping of typed errors to exit codes.

How:
  A small Python program with a shebang pointing at the running interpreter
  plays the engine: it accepts the passkey ``right``, answers queries in shell
  CSV and reports ``file is not a database`` otherwise. A configuration file in
  ``tmp_path`` points ``engine.binary_path`` at it.

Interfaces:
  ``test_query_prints_json``, ``test_query_raw_output``,
  ``test_wrong_key_exits_with_diagnostics``, ``test_create_bootstraps_database``,
  ``test_missing_config_file_fails``, ``test_interrupt_exits_130``,
  ``test_create_initialises_once``, ``test_create_in_missing_directory_fails_cleanly``.
"""

import json
import pathlib
import sys
import textwrap
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from dbcrypt.cli import app

pytestmark = pytest.mark.skipif(sys.platform.startswith("win"), reason="shebang engine needs POSIX")

ENGINE_SOURCE = '''
import sys

script = sys.stdin.read()
if "PRAGMA key = 'right';" not in script:
    sys.stdout.write("Parse error near line 6: file is not a database (26)\\n")
    sys.exit(1)
statement = script.splitlines()[5]
if statement.startswith("CREATE"):
    with open(sys.argv[1] + ".log", "w") as handle:
        handle.write(statement)
    sys.exit(0)
sys.stdout.write("database,statement,missing\\r\\n")
sys.stdout.write('"%s","%s",\\x01NULL\\x01\\r\\n' % (sys.argv[1], statement.replace('"', '""')))
'''


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the stand-in engine and a config file that selects it."""

    engine = tmp_path / "fake-sqlcipher"
    engine.write_text(f"#!{sys.executable}\n" + textwrap.dedent(ENGINE_SOURCE))
    engine.chmod(0o755)
    config = tmp_path / "dbcrypt.yaml"
    config.write_text(f"engine:\n  binary_path: {engine}\n  timeout_seconds: 30\n")
    return config


def test_query_prints_json(runner: CliRunner, config_file: pathlib.Path, tmp_path: pathlib.Path) -> None:
    database = tmp_path / "app.db"
    result = runner.invoke(
        app,
        ["query", str(database), "--sql", "SELECT 1;", "--config", str(config_file)],
        env={"DBCRYPT_KEY": "right"},
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [
        {"database": str(database), "statement": "SELECT 1;", "missing": None}
    ]


def test_query_raw_output(runner: CliRunner, config_file: pathlib.Path, tmp_path: pathlib.Path) -> None:
    result = runner.invoke(
        app,
        [
            "query",
            str(tmp_path / "app.db"),
            "--sql",
            "SELECT 1;",
            "--key",
            "right",
            "--raw",
            "--config",
            str(config_file),
        ],
    )

    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines()[0] == "database,statement,missing"


def test_wrong_key_exits_with_diagnostics(
    runner: CliRunner, config_file: pathlib.Path, tmp_path: pathlib.Path
) -> None:
    """A rejected passkey exits ``1`` and echoes the engine's own text."""

    result = runner.invoke(
        app,
        ["query", str(tmp_path / "app.db"), "--sql", "SELECT 1;", "--key", "wrong", "--config", str(config_file)],
    )

    assert result.exit_code == 1
    assert "error: Engine rejected the passkey" in result.output
    assert "file is not a database (26)" in result.output


def test_create_bootstraps_database(runner: CliRunner, config_file: pathlib.Path, tmp_path: pathlib.Path) -> None:
    database = tmp_path / "new.db"
    result = runner.invoke(
        app,
        ["create", str(database), "--config", str(config_file)],
        env={"DBCRYPT_KEY": "right"},
    )

    assert result.exit_code == 0, result.output
    assert f"Created encrypted database {database}" in result.stdout
    assert database.exists()
    assert (tmp_path / "new.db.log").read_text().startswith("CREATE TABLE IF NOT EXISTS init_table")


def test_missing_config_file_fails(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    result = runner.invoke(
        app,
        ["query", str(tmp_path / "app.db"), "--sql", "SELECT 1;", "--key", "k", "--config", str(tmp_path / "no.yaml")],
    )

    assert result.exit_code == 1
    assert "Configuration file missing" in result.output


def test_interrupt_exits_130(monkeypatch: pytest.MonkeyPatch, runner: CliRunner, tmp_path: pathlib.Path) -> None:
    tool = MagicMock()
    tool.__enter__.return_value = tool
    tool.execute_sql_as_json.side_effect = KeyboardInterrupt
    monkeypatch.setattr("dbcrypt.cli._build_tool", lambda config_path: tool)

    result = runner.invoke(app, ["query", str(tmp_path / "app.db"), "--sql", "SELECT 1;", "--key", "k"])

    assert result.exit_code == 130
    tool.__exit__.assert_called_once()


def test_create_initialises_once(monkeypatch: pytest.MonkeyPatch, runner: CliRunner, tmp_path: pathlib.Path) -> None:
    """``create`` goes through a single initialisation so staging happens once."""

    tool = MagicMock()
    tool.__enter__.return_value = tool
    monkeypatch.setattr("dbcrypt.cli._build_tool", lambda config_path: tool)
    database = tmp_path / "new.db"

    result = runner.invoke(app, ["create", str(database), "--key", "k", "--verbose"])

    assert result.exit_code == 0, result.output
    tool.init.assert_not_called()
    tool.create_encrypted_database.assert_called_once_with(database, "k", True)


def test_create_in_missing_directory_fails_cleanly(
    runner: CliRunner, config_file: pathlib.Path, tmp_path: pathlib.Path
) -> None:
    result = runner.invoke(
        app,
        ["create", str(tmp_path / "nope" / "new.db"), "--key", "right", "--config", str(config_file)],
    )

    assert result.exit_code == 1
    assert "Unable to create database file" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
