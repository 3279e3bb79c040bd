"""JSON rendering of parsed results."""
from __future__ import annotations

import json
from typing import Optional

from .parser import ResultTable


def _dumps(value: Optional[str]) -> str:
    return json.dumps(value, ensure_ascii=False)


class JsonProjector:
    """Render result tables and engine messages as JSON text.

    Objects are assembled key by key rather than through a ``dict`` so that
    repeated column names (``SELECT a, a FROM t``) survive in order.
    """

    def project_table(self, table: ResultTable) -> str:
        objects = []
        for row in table.rows:
            members = ",".join(f"{_dumps(header)}:{_dumps(cell)}" for header, cell in zip(table.headers, row))
            objects.append("{" + members + "}")
        return "[" + ",".join(objects) + "]"

    def project_message(self, message: str) -> str:
        return json.dumps({"message": message}, ensure_ascii=False, separators=(",", ":"))
