"""Platform profiles describing where the engine binary comes from.

What:
  Define :class:`PlatformProfile` and select the profile matching a
  ``sys.platform`` style identifier.

Why:
  Windows hosts have no trusted system installation of SQLCipher and need the
  bundled binary staged next to its DLL, while macOS and other POSIX systems
  ship it through package managers. Capturing those differences as data keeps
  the resolver and executor free of platform branches.

How:
  Three immutable profiles are matched by identifier prefix. The profile also
  knows which environment variable lets the engine find its auxiliary library
  and how to prepend the working directory to it.

Interfaces:
  :class:`PlatformProfile`, :func:`select_profile`, :data:`WINDOWS`,
  :data:`MACOS`, :data:`POSIX`.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from ..errors import UnsupportedPlatformError


@dataclass(frozen=True)
class PlatformProfile:
    """How the engine is located and launched on one OS family."""

    name: str
    needs_staging: bool
    system_path_candidates: Tuple[str, ...]
    env_var_name: str
    executable_name: str
    binary_resource: Optional[str] = None
    library_resource: Optional[str] = None

    def augment_environment(self, base: Mapping[str, str], working_directory: Path) -> dict[str, str]:
        """Return a copy of ``base`` with ``working_directory`` prepended to the
        library search variable."""

        env = dict(base)
        existing = env.get(self.env_var_name)
        prefix = str(working_directory)
        env[self.env_var_name] = f"{prefix}{os.pathsep}{existing}" if existing else prefix
        return env


WINDOWS = PlatformProfile(
    name="windows",
    needs_staging=True,
    system_path_candidates=(),
    env_var_name="PATH",
    executable_name="sqlite3.exe",
    binary_resource="sqlite3.exe",
    library_resource="sqlite3.dll",
)

MACOS = PlatformProfile(
    name="macos",
    needs_staging=False,
    system_path_candidates=("/opt/homebrew/bin/sqlcipher", "/usr/local/bin/sqlcipher"),
    env_var_name="DYLD_LIBRARY_PATH",
    executable_name="sqlcipher",
)

POSIX = PlatformProfile(
    name="posix",
    needs_staging=False,
    system_path_candidates=("/usr/bin/sqlcipher", "/usr/local/bin/sqlcipher"),
    env_var_name="LD_LIBRARY_PATH",
    executable_name="sqlcipher",
)

_PREFIXES: Tuple[Tuple[str, PlatformProfile], ...] = (
    ("win32", WINDOWS),
    ("cygwin", WINDOWS),
    ("darwin", MACOS),
    ("linux", POSIX),
    ("freebsd", POSIX),
    ("openbsd", POSIX),
    ("netbsd", POSIX),
    ("sunos", POSIX),
    ("aix", POSIX),
)


def select_profile(platform_id: Optional[str] = None) -> PlatformProfile:
    """Return the profile for ``platform_id`` (defaults to ``sys.platform``).

    Raises:
      UnsupportedPlatformError: When no profile matches the identifier.
    """

    identifier = (platform_id or sys.platform).lower()
    for prefix, profile in _PREFIXES:
        if identifier.startswith(prefix):
            return profile
    raise UnsupportedPlatformError(f"Unsupported operating system: {identifier}")
