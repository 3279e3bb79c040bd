"""Decide whether an engine run succeeded and what kind of output it produced.

What:
  Map a :class:`~dbcrypt.engine.process.RawOutput` to a table-bearing success,
  a message-only success, or a typed failure.

Why:
  This is the only place the failure taxonomy is decided. A wrong passkey, a
  bad statement and a crashed engine must reach the caller as distinct errors
  carrying the engine's own words, never as an empty result.

How:
  Drop the ``ok`` acknowledgement some SQLCipher builds print for
  ``PRAGMA key``, then apply ordered heuristics: non-zero exit with a wrong-key
  phrase, any other non-zero exit, a zero exit whose first line is an engine
  error, and finally the table-versus-message decision.

Interfaces:
  :class:`OutcomeKind`, :class:`Classification`, :class:`OutputClassifier`.

Invariants & Safety:
  - Unrecognised non-zero exits always raise :class:`StatementError` with the
    raw output lines.
  - Phrase matching is case-insensitive substring matching against the
    engine's error message only; echoed SQL and result rows are ignored.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..config.schema import (
    DEFAULT_ERROR_PREFIXES,
    DEFAULT_NULL_SENTINEL,
    DEFAULT_WRONG_KEY_PHRASES,
)
from ..engine.process import RawOutput
from ..errors import StatementError, WrongKeyError

KEY_ACKNOWLEDGEMENT = "ok"
_LOCATION = re.compile(r"^\s*(?:near line \d+)?\s*:?\s*")


class OutcomeKind(str, enum.Enum):
    TABLE = "table"
    MESSAGE = "message"


@dataclass(frozen=True)
class Classification:
    """Successful outcome; ``body`` is the output without the key acknowledgement."""

    kind: OutcomeKind
    body: str
    exit_code: int = 0

    @property
    def message(self) -> str:
        return self.body.rstrip("\r\n")


def strip_acknowledgement(text: str) -> str:
    """Remove a single leading ``ok`` line."""

    for ending in ("\r\n", "\n"):
        head = KEY_ACKNOWLEDGEMENT + ending
        if text.startswith(head):
            return text[len(head):]
    if text == KEY_ACKNOWLEDGEMENT:
        return ""
    return text


class OutputClassifier:
    """Classify engine output using configurable phrases."""

    def __init__(
        self,
        *,
        wrong_key_phrases: Optional[Iterable[str]] = None,
        error_prefixes: Optional[Iterable[str]] = None,
        null_sentinel: str = DEFAULT_NULL_SENTINEL,
        delimiter: str = ",",
    ) -> None:
        phrases = DEFAULT_WRONG_KEY_PHRASES if wrong_key_phrases is None else wrong_key_phrases
        prefixes = DEFAULT_ERROR_PREFIXES if error_prefixes is None else error_prefixes
        self.wrong_key_phrases = tuple(phrase.lower() for phrase in phrases)
        self.error_prefixes = tuple(prefixes)
        self.null_sentinel = null_sentinel
        self.delimiter = delimiter

    def classify(self, raw: RawOutput) -> Classification:
        """Return the success classification or raise the failure.

        Raises:
          WrongKeyError: The engine could not decrypt the database.
          StatementError: Any other engine-reported failure.
        """

        body = strip_acknowledgement(raw.text)
        lines = RawOutput(text=body, exit_code=raw.exit_code).lines

        if raw.exit_code != 0:
            self._raise_failure(raw.exit_code, raw.lines)
        if lines and lines[0].startswith(self.error_prefixes):
            self._raise_failure(raw.exit_code, raw.lines)

        if not lines:
            return Classification(kind=OutcomeKind.TABLE, body=body, exit_code=raw.exit_code)
        first = lines[0]
        if self.delimiter not in first and first != self.null_sentinel and len(lines) == 1:
            return Classification(kind=OutcomeKind.MESSAGE, body=body, exit_code=raw.exit_code)
        return Classification(kind=OutcomeKind.TABLE, body=body, exit_code=raw.exit_code)

    def error_message(self, lines: Sequence[str]) -> Optional[str]:
        """Return the engine's error text without its prefix and location.

        The first line carrying an error prefix wins; the lines after it echo
        the failing SQL. Without any prefixed line the first non-empty line is
        used.
        """

        for line in lines:
            for prefix in self.error_prefixes:
                if line.startswith(prefix):
                    return _LOCATION.sub("", line[len(prefix):], count=1)
        for line in lines:
            if line.strip() and line != KEY_ACKNOWLEDGEMENT:
                return line
        return None

    def _raise_failure(self, exit_code: int, lines: Sequence[str]) -> None:
        diagnostics: List[str] = list(lines)
        message = self.error_message(diagnostics)
        if message is not None and any(phrase in message.lower() for phrase in self.wrong_key_phrases):
            raise WrongKeyError(
                "Engine rejected the passkey or the file is not an encrypted database",
                exit_code=exit_code,
                diagnostic_lines=diagnostics,
            )
        summary = message or (diagnostics[0] if diagnostics else "engine exited without output")
        raise StatementError(
            f"Engine reported an error: {summary}",
            exit_code=exit_code,
            diagnostic_lines=diagnostics,
        )
