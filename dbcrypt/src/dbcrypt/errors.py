"""Typed failures raised by the encrypted SQL execution pipeline.

What:
  Declare :class:`ErrorKind` and one exception class per failure kind, all
  deriving from :class:`DbCryptError`.

Why:
  Callers must tell a wrong passkey from a bad statement from a missing engine
  binary without parsing messages. Carrying the engine's exit code and raw
  output lines on every error keeps that distinction lossless.

How:
  :class:`DbCryptError` stores ``kind``, ``exit_code`` and
  ``diagnostic_lines``; subclasses pin ``kind`` so ``except`` clauses can be as
  broad or as narrow as the caller needs.

Interfaces:
  :class:`ErrorKind`, :class:`DbCryptError` and its subclasses.

Invariants & Safety:
  - Diagnostic lines are stored as an immutable tuple, verbatim.
  - ``exit_code`` is ``-1`` when no engine process produced one.
"""
from __future__ import annotations

import enum
from typing import ClassVar, Iterable, Optional, Tuple


class ErrorKind(str, enum.Enum):
    """Failure taxonomy shared by every stage of the pipeline."""

    UNSUPPORTED_PLATFORM = "unsupported_platform"
    BINARY_NOT_FOUND = "binary_not_found"
    RESOURCE_EXTRACTION_FAILED = "resource_extraction_failed"
    PROCESS_SPAWN_FAILED = "process_spawn_failed"
    PROCESS_TIMED_OUT = "process_timed_out"
    INTERRUPTED_WAIT = "interrupted_wait"
    WRONG_KEY = "wrong_key"
    STATEMENT_OR_ENGINE_ERROR = "statement_or_engine_error"
    MALFORMED_OUTPUT = "malformed_output"
    NOT_INITIALIZED = "not_initialized"


class DbCryptError(Exception):
    """Base error carrying the failure kind and engine diagnostics.

    What:
      Immutable value describing why an operation failed.

    Why:
      A single base type lets callers catch every pipeline failure while still
      branching on :attr:`kind` when they need to.

    How:
      Subclasses set :attr:`default_kind`; the constructor copies the
      diagnostic lines into a tuple so later mutation of the source list has no
      effect.
    """

    default_kind: ClassVar[ErrorKind] = ErrorKind.STATEMENT_OR_ENGINE_ERROR

    def __init__(
        self,
        message: str,
        *,
        exit_code: int = -1,
        diagnostic_lines: Iterable[str] = (),
        kind: Optional[ErrorKind] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.exit_code = exit_code
        self.diagnostic_lines: Tuple[str, ...] = tuple(diagnostic_lines)

    def __str__(self) -> str:
        if self.exit_code == -1:
            return self.message
        return f"{self.message} (exit code {self.exit_code})"


class UnsupportedPlatformError(DbCryptError):
    """No platform profile matches the host."""

    default_kind = ErrorKind.UNSUPPORTED_PLATFORM


class BinaryNotFoundError(DbCryptError):
    """No usable engine executable could be located."""

    default_kind = ErrorKind.BINARY_NOT_FOUND


class ResourceExtractionError(DbCryptError):
    """A bundled engine resource was missing or could not be written."""

    default_kind = ErrorKind.RESOURCE_EXTRACTION_FAILED


class ProcessSpawnError(DbCryptError):
    """The engine executable could not be started."""

    default_kind = ErrorKind.PROCESS_SPAWN_FAILED


class ProcessTimedOutError(DbCryptError):
    """The engine did not finish before the configured timeout."""

    default_kind = ErrorKind.PROCESS_TIMED_OUT


class InterruptedWaitError(DbCryptError):
    """The caller cancelled the wait; the engine process was killed."""

    default_kind = ErrorKind.INTERRUPTED_WAIT


class WrongKeyError(DbCryptError):
    """The engine rejected the passkey (or the file is not a database)."""

    default_kind = ErrorKind.WRONG_KEY


class StatementError(DbCryptError):
    """The engine reported an error for the statement or failed otherwise."""

    default_kind = ErrorKind.STATEMENT_OR_ENGINE_ERROR


class MalformedOutputError(DbCryptError):
    """Engine output could not be parsed as the expected delimited table."""

    default_kind = ErrorKind.MALFORMED_OUTPUT


class NotInitializedError(DbCryptError, RuntimeError):
    """An execute call was made without a live session.

    This signals a programming error in the caller, not a runtime SQL failure,
    which is why it also derives from :class:`RuntimeError`.
    """

    default_kind = ErrorKind.NOT_INITIALIZED


__all__ = [
    "BinaryNotFoundError",
    "DbCryptError",
    "ErrorKind",
    "InterruptedWaitError",
    "MalformedOutputError",
    "NotInitializedError",
    "ProcessSpawnError",
    "ProcessTimedOutError",
    "ResourceExtractionError",
    "StatementError",
    "UnsupportedPlatformError",
    "WrongKeyError",
]
