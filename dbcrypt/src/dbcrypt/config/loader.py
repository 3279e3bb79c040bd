"""Strict loader for the dbcrypt configuration document.

What:
  Locate, parse, validate, and cache ``dbcrypt.yaml``.

Why:
  Engine location, timeouts and the NULL sentinel are deployment concerns.
  Centralising the parsing enforces one validation path so the execution
  pipeline can trust the resulting model.

How:
  Resolve candidate file locations from an explicit parameter, the
  ``DBCRYPT_CONFIG_PATH`` environment variable and well-known defaults. Parse
  the first existing file with :func:`yaml.safe_load`, validate it using
  Pydantic models, and cache the result. When no file exists the defaults of
  :class:`~dbcrypt.config.schema.ToolConfig` apply.

Interfaces:
  :func:`load_config`, :func:`get_config`, :func:`reset_config`,
  :class:`ConfigLoadError`.

Invariants:
  - External payloads pass strict Pydantic validation before being returned.
  - The cache respects explicit reload requests and the precedence order of
    candidate paths.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from .schema import ToolConfig


class ConfigLoadError(Exception):
    """Error raised when ``dbcrypt.yaml`` cannot be read or validated.

    What:
      Signals a malformed, unreadable or schema-violating configuration file.

    Why:
      Configuration mistakes are operator errors and must be reported
      separately from engine failures.
    """


_CONFIG_ENV = "DBCRYPT_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("dbcrypt.yaml"),
    Path("~/.config/dbcrypt/config.yaml"),
    Path("/etc/dbcrypt/config.yaml"),
)
_CONFIG_CACHE: Optional[Tuple[Optional[Path], ToolConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration file locations in priority order, deduplicated."""

    seen: set[Path] = set()
    env_path = os.environ.get(_CONFIG_ENV)
    ordered = [path, Path(env_path) if env_path else None, *_DEFAULT_LOCATIONS]
    for entry in ordered:
        if entry is None:
            continue
        candidate = entry.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def _parse_payload(text: str, source: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigLoadError(f"{source} must contain a mapping at the top-level")
    return payload


def _load_from_path(path: Path) -> ToolConfig:
    """Read ``path`` and validate it into a :class:`ToolConfig`.

    Raises:
      ConfigLoadError: If the file cannot be read or fails validation.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Unable to read configuration file {path}: {exc}") from exc
    payload = _parse_payload(text, path)
    try:
        return ToolConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise ConfigLoadError(f"Invalid configuration in {path}: {exc}") from exc


def load_config(path: Optional[Path | str] = None, *, reload: bool = False) -> ToolConfig:
    """Resolve, parse, and cache the tool configuration.

    What:
      Locate ``dbcrypt.yaml`` using the precedence chain and return a validated
      :class:`ToolConfig`.

    Why:
      Every tool instance needs the settings; caching avoids repeated disk IO
      while ``reload`` enables deterministic refreshes during tests.

    How:
      An explicitly requested path must exist. Otherwise candidates are tried in
      order and the first existing file wins; with none present the defaults
      are cached and returned.

    Args:
      path: Optional explicit location of the configuration file.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Returns:
      The validated configuration.

    Raises:
      ConfigLoadError: If a file exists but is invalid, or an explicit path is
        missing.
    """

    global _CONFIG_CACHE

    requested = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _CONFIG_CACHE is not None:
        cached_path, cached_config = _CONFIG_CACHE
        if requested is None or cached_path == requested:
            return cached_config

    if requested is not None and not requested.exists():
        raise ConfigLoadError(f"Configuration file missing: {requested}")

    for candidate in _candidate_paths(requested):
        if not candidate.is_file():
            continue
        config = _load_from_path(candidate)
        _CONFIG_CACHE = (candidate, config)
        return config

    config = ToolConfig()
    _CONFIG_CACHE = (None, config)
    return config


def get_config() -> ToolConfig:
    """Return the cached configuration, loading it on demand."""

    return load_config()


def reset_config() -> None:
    """Clear the configuration cache so the next call reloads from disk."""

    global _CONFIG_CACHE
    _CONFIG_CACHE = None
