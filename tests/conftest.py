"""Pytest configuration shared by unit and end-to-end suites.

What:
  Put the in-repo source tree on ``sys.path`` and pin the configuration file
  every test sees.

Why:
  Tests must exercise the working tree rather than an installed wheel, and the
  configuration cache is process-global; without explicit resets tests could
  depend on execution order or on a ``dbcrypt.yaml`` in the developer's home.

How:
  Prepend ``dbcrypt/src`` at import time, then an autouse fixture sets
  ``DBCRYPT_CONFIG_PATH`` to ``tests/data/config.yaml``, redirects the temp
  directory used for engine working directories into ``tmp_path``, and clears
  the configuration cache before and after each test.

Interfaces:
  :func:`tool_config` (autouse fixture).
"""

import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "dbcrypt" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from dbcrypt.config.loader import reset_config

CONFIG_PATH = Path(__file__).resolve().parent / "data" / "config.yaml"


@pytest.fixture(autouse=True)
def tool_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Apply the canned configuration file and an isolated temp directory.

    Args:
      monkeypatch: Pytest helper used for environment control.
      tmp_path: Per-test directory that replaces the system temp dir.
    """

    monkeypatch.setenv("DBCRYPT_CONFIG_PATH", str(CONFIG_PATH))
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    reset_config()
    try:
        yield
    finally:
        reset_config()
