"""Session value and lifecycle for the encrypted SQL tool.

What:
  :class:`Session` bundles the validated database path, passkey, working
  directory and resolved engine; :class:`SessionStatus` tracks the lifecycle.

Why:
  Exactly one session is live per tool. Making it an immutable value means
  re-initialisation replaces it wholesale and close can discard it without
  partial states.

How:
  Frozen dataclass with the passkey excluded from ``repr``;
  :func:`release_staged_files` deletes staged engine files and ignores files
  that are already gone.

Interfaces:
  :class:`SessionStatus`, :class:`Session`, :func:`release_staged_files`.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple


class SessionStatus(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


@dataclass(frozen=True)
class Session:
    """The live (path, key, working directory, engine) tuple."""

    database_path: Path
    key: str = field(repr=False)
    working_directory: Path
    resolved_binary: Path
    auxiliary_library: Optional[Path] = None
    logging_enabled: bool = False
    staged_files: Tuple[Path, ...] = ()


def release_staged_files(paths: Iterable[Path]) -> List[Path]:
    """Delete ``paths``; return the ones actually removed.

    Missing files and filesystem errors are ignored since a leftover staged
    binary does not affect later sessions.
    """

    removed = []
    for path in paths:
        try:
            path.unlink()
        except OSError:
            continue
        removed.append(path)
    return removed
