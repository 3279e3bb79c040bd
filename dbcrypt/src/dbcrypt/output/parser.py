"""Parsing of the engine's CSV output into an ordered result table.

What:
  Turn header-first CSV text into a :class:`ResultTable` whose cells are
  either text or ``None`` for SQL NULL.

Why:
  Values may contain the delimiter, quotes and line breaks, so naive splitting
  corrupts them. NULL is only recognisable as the *unquoted* sentinel token;
  :mod:`csv` discards whether a field was quoted, so the tokenizer here keeps
  that bit.

How:
  A single pass over the text yields records of ``(value, quoted)`` fields
  using standard quoting: a field opening with ``"`` runs to the matching
  unpaired ``"``, ``""`` inside it is a literal quote, and line breaks inside it
  are data. Records end at ``\\n`` or ``\\r\\n`` outside quotes. The first
  record is the header; short rows are padded with ``None`` and long rows are
  rejected.

Interfaces:
  :class:`ResultTable`, :class:`TabularResultParser`.

Invariants & Safety:
  - Every row has exactly ``len(headers)`` cells.
  - A quoted field equal to the sentinel stays text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Tuple

from ..config.schema import DEFAULT_NULL_SENTINEL
from ..errors import MalformedOutputError

Cell = Optional[str]


class _Field(NamedTuple):
    value: str
    quoted: bool


@dataclass(frozen=True)
class ResultTable:
    """Ordered headers and rows; ``None`` cells are SQL NULL."""

    headers: Tuple[str, ...]
    rows: Tuple[Tuple[Cell, ...], ...] = ()

    def records(self) -> List[List[Tuple[str, Cell]]]:
        """Return each row as ``(header, cell)`` pairs in column order."""

        return [list(zip(self.headers, row)) for row in self.rows]


class TabularResultParser:
    """Parse CSV engine output using the configured NULL sentinel."""

    def __init__(self, *, null_sentinel: str = DEFAULT_NULL_SENTINEL, delimiter: str = ",") -> None:
        if len(delimiter) != 1 or delimiter in ('"', "\n", "\r"):
            raise ValueError("delimiter must be a single non-quote, non-newline character")
        self.null_sentinel = null_sentinel
        self.delimiter = delimiter

    def parse(self, text: str) -> ResultTable:
        """Parse ``text`` into a :class:`ResultTable`.

        Raises:
          MalformedOutputError: A row has more cells than the header, a quoted
            field is unterminated, or text follows a closing quote.
        """

        records = self._records(text)
        header = next(records, None)
        if header is None:
            return ResultTable(headers=())
        headers = tuple(field.value for field in header)
        width = len(headers)

        rows = []
        for number, record in enumerate(records, start=1):
            if len(record) > width:
                raise MalformedOutputError(
                    f"Row {number} has {len(record)} cells but the header has {width}",
                    diagnostic_lines=text.splitlines(),
                )
            cells = [self._cell(field) for field in record]
            cells.extend([None] * (width - len(cells)))
            rows.append(tuple(cells))
        return ResultTable(headers=headers, rows=tuple(rows))

    def _cell(self, field: _Field) -> Cell:
        if not field.quoted and field.value == self.null_sentinel:
            return None
        return field.value

    def _records(self, text: str) -> Iterator[List[_Field]]:
        delimiter = self.delimiter
        record: List[_Field] = []
        buf: List[str] = []
        quoted = False
        in_quotes = False
        index = 0
        length = len(text)

        while index < length:
            char = text[index]
            if in_quotes:
                if char == '"':
                    if index + 1 < length and text[index + 1] == '"':
                        buf.append('"')
                        index += 2
                        continue
                    in_quotes = False
                else:
                    buf.append(char)
                index += 1
                continue

            if char == '"' and not buf and not quoted:
                quoted = in_quotes = True
                index += 1
                continue
            if char == delimiter:
                record.append(_Field("".join(buf), quoted))
                buf, quoted = [], False
                index += 1
                continue
            if char == "\n" or (char == "\r" and text.startswith("\n", index + 1)):
                record.append(_Field("".join(buf), quoted))
                if not self._is_blank(record):
                    yield record
                record, buf, quoted = [], [], False
                index += 1 if char == "\n" else 2
                continue
            if quoted:
                raise MalformedOutputError(
                    f"Unexpected character {char!r} after closing quote at offset {index}",
                    diagnostic_lines=text.splitlines(),
                )
            buf.append(char)
            index += 1

        if in_quotes:
            raise MalformedOutputError(
                "Unterminated quoted field in engine output",
                diagnostic_lines=text.splitlines(),
            )
        if buf or quoted or record:
            record.append(_Field("".join(buf), quoted))
            if not self._is_blank(record):
                yield record

    @staticmethod
    def _is_blank(record: List[_Field]) -> bool:
        return len(record) == 1 and not record[0].quoted and record[0].value == ""
