"""
Module: dbcrypt.__init__

What:
  Aggregate package exports for dbcrypt, a tool that runs SQL against
  SQLCipher-encrypted database files by driving the ``sqlcipher`` shell as a
  subprocess.

Why:
  Callers should only need :class:`EncryptedSqlTool` and the error types; the
  engine, output and configuration subpackages stay importable for callers who
  assemble the pipeline themselves (for example with a fake engine).

Interfaces:
  - EncryptedSqlTool: session facade (init, execute, close).
  - ResultTable: parsed tabular result.
  - DbCryptError and subclasses: typed failures.
  - config, engine, output, utils: subpackages.
"""

from .errors import (
    BinaryNotFoundError,
    DbCryptError,
    ErrorKind,
    InterruptedWaitError,
    MalformedOutputError,
    NotInitializedError,
    ProcessSpawnError,
    ProcessTimedOutError,
    ResourceExtractionError,
    StatementError,
    UnsupportedPlatformError,
    WrongKeyError,
)
from .output.parser import ResultTable
from .session import Session, SessionStatus
from .tool import EncryptedSqlTool

__version__ = "0.1.0"

__all__ = [
    "BinaryNotFoundError",
    "DbCryptError",
    "EncryptedSqlTool",
    "ErrorKind",
    "InterruptedWaitError",
    "MalformedOutputError",
    "NotInitializedError",
    "ProcessSpawnError",
    "ProcessTimedOutError",
    "ResourceExtractionError",
    "ResultTable",
    "Session",
    "SessionStatus",
    "StatementError",
    "UnsupportedPlatformError",
    "WrongKeyError",
    "config",
    "engine",
    "output",
    "utils",
]
