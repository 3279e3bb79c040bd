"""Pytest fixtures for unit tests driving the tool against fake engines.

What:
  Make ``tests/unit`` importable and expose fixtures producing a
  :class:`FakeEngine`, a fake engine binary, and an :class:`EncryptedSqlTool`
  wired to both.

Why:
  Tool-level tests should assert on classification, parsing and lifecycle
  without depending on a SQLCipher installation.

How:
  The fake binary is an empty executable file referenced through
  ``engine.binary_path`` so resolution succeeds deterministically; the runner
  factory ignores it and returns the shared fake engine.

Interfaces:
  :func:`fake_engine`, :func:`fake_binary`, :func:`log_stream`, :func:`tool`.
"""

import io
import sys
from pathlib import Path

import pytest

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeEngine, make_executable

from dbcrypt.config.schema import EngineSettings, ToolConfig
from dbcrypt.tool import EncryptedSqlTool
from dbcrypt.utils.logging import JsonLogger


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_binary(tmp_path: Path) -> Path:
    binary = tmp_path / "bin" / "sqlcipher"
    binary.parent.mkdir()
    binary.write_text("")
    return make_executable(binary)


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def tool(fake_engine: FakeEngine, fake_binary: Path, log_stream: io.StringIO) -> EncryptedSqlTool:
    """Yield a tool bound to the fake engine; closed after the test."""

    config = ToolConfig(engine=EngineSettings(binary_path=str(fake_binary)))
    instance = EncryptedSqlTool(
        config,
        logger=JsonLogger(stream=log_stream, component="test"),
        platform_id="linux",
        runner_factory=lambda session, profile: fake_engine,
    )
    yield instance
    instance.close()
