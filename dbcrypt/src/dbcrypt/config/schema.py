"""Pydantic models describing dbcrypt configuration documents."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_NULL_SENTINEL = "\x01NULL\x01"
DEFAULT_BOOTSTRAP_STATEMENT = (
    "CREATE TABLE IF NOT EXISTS init_table (id INTEGER PRIMARY KEY, message TEXT);"
)
DEFAULT_WRONG_KEY_PHRASES = [
    "file is not a database",
    "file is encrypted",
    "hmac check failed",
]
DEFAULT_ERROR_PREFIXES = ["Error:", "Parse error", "Runtime error"]


class EngineSettings(BaseModel):
    """How the engine subprocess is located and driven."""

    model_config = ConfigDict(extra="forbid")

    binary_path: Optional[str] = None
    cipher_compatibility: int = Field(default=3, ge=1, le=4)
    null_sentinel: str = DEFAULT_NULL_SENTINEL
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    work_dir_name: str = Field(default="dbcrypt-engine", min_length=1)

    @field_validator("null_sentinel")
    @classmethod
    def _validate_sentinel(cls, value: str) -> str:
        # The engine quotes any data value holding a control character, so only
        # the raw NULL marker can appear unquoted.
        if not any(ord(char) < 0x20 for char in value):
            raise ValueError("null_sentinel must contain a control character")
        if "\n" in value or "\r" in value:
            raise ValueError("null_sentinel must not contain line breaks")
        return value

    @field_validator("work_dir_name")
    @classmethod
    def _validate_work_dir(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError("work_dir_name must be a single path component")
        return value


class ClassifierSettings(BaseModel):
    """Substrings used to classify engine failures."""

    model_config = ConfigDict(extra="forbid")

    wrong_key_phrases: List[str] = Field(default_factory=lambda: list(DEFAULT_WRONG_KEY_PHRASES))
    error_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_ERROR_PREFIXES))


class BootstrapSettings(BaseModel):
    """Statement issued when a new encrypted database is created."""

    model_config = ConfigDict(extra="forbid")

    statement: str = Field(default=DEFAULT_BOOTSTRAP_STATEMENT, min_length=1)


class LoggingSettings(BaseModel):
    """Structured logging toggles."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    component: str = "dbcrypt"


class ToolConfig(BaseModel):
    """Root configuration loaded from ``dbcrypt.yaml``."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    engine: EngineSettings = Field(default_factory=EngineSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    bootstrap: BootstrapSettings = Field(default_factory=BootstrapSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
