"""Data repair helpers built on top of :class:`~dbcrypt.tool.EncryptedSqlTool`.

What:
  :func:`repair_doubled_quotes` strips stray ``""`` pairs that earlier writers
  left at the start and end of text values.

Why:
  Values written by naive CSV round trips sometimes come back wrapped in
  doubled quotes (``""Template""``). Fixing them in place is a single UPDATE,
  but the CASE expression is easy to get wrong by hand.

How:
  Build the UPDATE with ``SUBSTR`` for the three shapes (both ends, leading
  only, trailing only), quoting identifiers, and run it through the tool.
"""
from __future__ import annotations

from typing import List

from .tool import EncryptedSqlTool


def quote_identifier(name: str) -> str:
    """Return ``name`` as a double-quoted SQL identifier."""

    return '"' + name.replace('"', '""') + '"'


def doubled_quote_repair_sql(table: str, column: str) -> str:
    """Return the UPDATE statement that strips leading/trailing ``""`` pairs."""

    tbl = quote_identifier(table)
    col = quote_identifier(column)
    return (
        f"UPDATE {tbl} SET {col} = CASE "
        f"WHEN {col} LIKE '\"\"%\"\"' THEN SUBSTR({col}, 3, LENGTH({col}) - 4) "
        f"WHEN {col} LIKE '\"\"%' THEN SUBSTR({col}, 3) "
        f"WHEN {col} LIKE '%\"\"' THEN SUBSTR({col}, 1, LENGTH({col}) - 2) "
        f"ELSE {col} END "
        f"WHERE {col} LIKE '%\"\"%';"
    )


def repair_doubled_quotes(tool: EncryptedSqlTool, table: str, column: str) -> List[str]:
    """Run :func:`doubled_quote_repair_sql` against the tool's live session."""

    return tool.execute_sql(doubled_quote_repair_sql(table, column))
