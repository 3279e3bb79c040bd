"""Tests for the structured JSON logger."""

import io
import json

from dbcrypt.utils.logging import REDACTED, JsonLogger, get_logger


def test_entries_are_single_line_json():
    stream = io.StringIO()
    logger = JsonLogger(stream=stream, component="unit")
    logger.info("Engine resolved", binary="/usr/bin/sqlcipher")
    logger.warning("Slow engine", seconds=2.5)
    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert first["lvl"] == "INFO" and first["msg"] == "Engine resolved"
    assert first["component"] == "unit" and first["binary"] == "/usr/bin/sqlcipher"
    assert "ts" in first
    assert second["lvl"] == "WARN" and second["seconds"] == 2.5


def test_sensitive_keys_are_redacted_at_any_depth():
    stream = io.StringIO()
    JsonLogger(stream=stream).error("boom", key="k1", nested={"passkey": "k2", "ok": 1}, password="k3")
    entry = json.loads(stream.getvalue())
    assert entry["key"] == REDACTED and entry["password"] == REDACTED
    assert entry["nested"] == {"passkey": REDACTED, "ok": 1}
    assert "k1" not in stream.getvalue() and "k2" not in stream.getvalue()


def test_non_json_values_are_stringified():
    stream = io.StringIO()
    get_logger("unit", stream).debug("path", where=io)
    assert json.loads(stream.getvalue())["where"].startswith("<module 'io'")
