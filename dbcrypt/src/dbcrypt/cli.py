"""dbcrypt command-line interface.

What:
  Provide a Typer-based entry point with ``query`` (run one statement and print
  JSON or raw engine output) and ``create`` (create and bootstrap an encrypted
  database).

Why:
  Operators need to inspect encrypted databases from shell scripts without
  writing Python. Routing the commands through :class:`EncryptedSqlTool` keeps
  their behaviour identical to library callers.

How:
  Load the configuration, build a tool, run inside a ``with`` block so staged
  engine files are always released, and map typed errors to exit code ``1``
  with the engine's diagnostic lines on stderr.

Interfaces:
  ``app`` (Typer application), ``query``, ``create``, ``main``.

Invariants & Safety:
  - Exit codes follow shell expectations (``0`` success, ``1`` failure).
  - Results go to stdout; diagnostics and logs go to stderr.
  - The passkey can come from ``DBCRYPT_KEY`` so it stays out of shell history.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config.loader import ConfigLoadError, load_config
from .errors import DbCryptError
from .tool import EncryptedSqlTool
from .utils.logging import get_logger


app = typer.Typer(help="Run SQL against SQLCipher-encrypted databases")

LOGGER = logging.getLogger("dbcrypt.cli")


def _build_tool(config_path: Optional[Path]) -> EncryptedSqlTool:
    config = load_config(config_path)
    return EncryptedSqlTool(config, logger=get_logger(config.logging.component))


def _fail(exc: Exception) -> typer.Exit:
    typer.echo(f"error: {exc}", err=True)
    for line in getattr(exc, "diagnostic_lines", ()):
        typer.echo(f"  {line}", err=True)
    return typer.Exit(code=1)


@app.command("query")
def query(
    database: Path = typer.Argument(..., help="Path to the encrypted database file"),
    sql: str = typer.Option(..., "--sql", help="Statement to execute"),
    key: str = typer.Option(..., "--key", envvar="DBCRYPT_KEY", help="Database passkey"),
    raw: bool = typer.Option(False, "--raw", help="Print engine output instead of JSON"),
    timeout: Optional[float] = typer.Option(None, help="Kill the engine after this many seconds"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to dbcrypt.yaml"),
    verbose: bool = typer.Option(False, "--verbose", help="Emit structured logs on stderr"),
) -> None:
    """Execute one statement and print its result."""

    try:
        with _build_tool(config) as tool:
            tool.init(database, key, verbose)
            if raw:
                output = tool.execute_sql_as_string(sql, timeout=timeout)
            else:
                output = tool.execute_sql_as_json(sql, timeout=timeout)
    except (DbCryptError, ConfigLoadError) as exc:
        LOGGER.debug("query_failed database=%s error=%s", database, exc)
        raise _fail(exc) from exc
    except KeyboardInterrupt:
        raise typer.Exit(code=130) from None
    typer.echo(output)


@app.command("create")
def create(
    database: Path = typer.Argument(..., help="Path of the database file to create"),
    key: str = typer.Option(..., "--key", envvar="DBCRYPT_KEY", help="Database passkey"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to dbcrypt.yaml"),
    verbose: bool = typer.Option(False, "--verbose", help="Emit structured logs on stderr"),
) -> None:
    """Create an encrypted database and run the bootstrap statement."""

    try:
        with _build_tool(config) as tool:
            tool.create_encrypted_database(database, key, verbose)
    except (DbCryptError, ConfigLoadError) as exc:
        LOGGER.debug("create_failed database=%s error=%s", database, exc)
        raise _fail(exc) from exc
    typer.echo(f"Created encrypted database {database}")


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
