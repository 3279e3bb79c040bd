"""dbcrypt logging helpers with deterministic JSON emission and key redaction.

What:
  Offer a tiny facade over Python streams so every dbcrypt component can emit
  JSON log lines with consistent fields and automatic removal of secrets.

Why:
  The tool handles database passkeys and hands them to a subprocess. Logs are
  often shipped to shared collectors, so the structured layout must make it
  impossible to leak the key by passing it as context, while keeping lines
  trivially greppable.

How:
  Provide a :class:`JsonLogger` dataclass that accepts a target stream and
  enforces uppercase severity levels. ``extra`` dictionaries are copied and
  scrubbed via a recursive redaction helper before being serialised with
  ``json.dump``. Loggers are built explicitly and injected; nothing here keeps
  process-wide state.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - The emitted payload always includes an ISO8601 timestamp, severity, and
    component name.
  - Known sensitive keys (``key``, ``passkey``, ``password``) are replaced with
    ``[redacted]`` even inside nested dictionaries.
  - Streams are flushed after every write.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"key", "passkey", "password"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON entries that include timestamps, severity, a
      component tag, and optional supplemental fields.

    Why:
      A uniform schema keeps test assertions and log pipelines simple, and a
      single redaction path guarantees passkeys never reach the sink.

    How:
      Stores the destination stream and component label, then exposes
      :meth:`log` plus level helpers that merge a canonical payload with
      redacted extras before serialising it.
    """

    stream: Any = field(default_factory=lambda: sys.stderr)
    component: str = "dbcrypt"

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        Args:
          level: Human-readable severity (e.g., ``"info"`` or ``"error"``).
          message: Core log message.
          extra: Optional context dictionary that will be redacted recursively.
        """

        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive keys masked at any depth."""

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


def get_logger(component: str, stream: Optional[TextIO] = None) -> JsonLogger:
    """Construct a :class:`JsonLogger` for the requested component.

    What:
      Returns a ready-to-use :class:`JsonLogger` bound to ``component``.

    Why:
      Call sites should not need to know the dataclass defaults; routing
      construction through one helper keeps the default stream consistent.

    Args:
      component: Logical subsystem name to include in log payloads.
      stream: Optional destination; defaults to ``stderr`` so structured
        diagnostics never interleave with query results on ``stdout``.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    if stream is None:
        return JsonLogger(component=component)
    return JsonLogger(stream=stream, component=component)
