"""Rendering of the command script fed to the engine's standard input.

What:
  Build the fixed directive sequence that unlocks the database, switches the
  shell to CSV output with headers and a NULL sentinel, runs one statement and
  exits.

Why:
  The engine is driven as a text protocol, so the exact bytes matter. Plain CSV
  cannot tell SQL NULL from an empty string; the ``.nullvalue`` directive with a
  control-character sentinel makes NULL an unquoted token that no real value
  can produce.

How:
  :class:`CommandProtocolBuilder` emits the lines in order; control characters
  in the sentinel are written as octal escapes inside a double-quoted shell
  argument. The statement and the passkey are inserted verbatim.

Interfaces:
  :class:`CommandScript`, :class:`CommandProtocolBuilder`.

Invariants & Safety:
  - Output is deterministic for a given (passkey, statement) pair.
  - No SQL validation or escaping happens here.
  - ``repr`` never shows the passkey.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..config.schema import DEFAULT_NULL_SENTINEL

KEY_LINE_INDEX = 1


@dataclass(frozen=True)
class CommandScript:
    """Immutable, ordered protocol lines for one engine invocation."""

    lines: Tuple[str, ...]

    def render(self) -> bytes:
        return "".join(f"{line}\n" for line in self.lines).encode("utf-8")

    def __repr__(self) -> str:
        masked = list(self.lines)
        if len(masked) > KEY_LINE_INDEX:
            masked[KEY_LINE_INDEX] = "PRAGMA key = '***';"
        return f"CommandScript(lines={tuple(masked)!r})"


def _shell_argument(value: str) -> str:
    """Quote ``value`` as a double-quoted dot-command argument."""

    parts = []
    for char in value:
        if char in ('"', "\\"):
            parts.append("\\" + char)
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            parts.append(f"\\{ord(char):03o}")
        else:
            parts.append(char)
    return '"' + "".join(parts) + '"'


class CommandProtocolBuilder:
    """Produce :class:`CommandScript` values for statements."""

    def __init__(self, *, cipher_compatibility: int = 3, null_sentinel: str = DEFAULT_NULL_SENTINEL) -> None:
        self.cipher_compatibility = cipher_compatibility
        self.null_sentinel = null_sentinel

    def build(self, passkey: str, statement: str) -> CommandScript:
        return CommandScript(
            lines=(
                f"PRAGMA cipher_compatibility = {self.cipher_compatibility};",
                f"PRAGMA key = '{passkey}';",
                ".mode csv",
                ".headers on",
                f".nullvalue {_shell_argument(self.null_sentinel)}",
                statement,
                ".exit",
            )
        )
