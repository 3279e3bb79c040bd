"""Expose the public utility surface for dbcrypt.

What:
  Re-export the structured logging helpers so callers can build the sink they
  inject into :class:`dbcrypt.tool.EncryptedSqlTool`.

Invariants & Safety:
  - The module only re-exports side-effect-free callables.
"""

from .logging import JsonLogger, get_logger

__all__ = [
    "JsonLogger",
    "get_logger",
]
