"""Locate or stage the engine executable for the host platform.

What:
  :class:`BinaryResolver` turns a :class:`PlatformProfile` into a runnable
  engine path, staging bundled resources when the platform requires it.

Why:
  Historically there were two tools, one staging a bundled shell and one using
  a system install. A single policy object supports both so callers never
  choose between code paths.

How:
  1. An explicit ``binary_path`` override wins and must be executable.
  2. Staging profiles delegate to :class:`ResourceStaging`.
  3. Otherwise probe the profile's system candidates, then ``which``.
  System resolutions are cached; a cached path that vanished is re-resolved.

Interfaces:
  :class:`ResolvedEngine`, :class:`BinaryResolver`.
"""
from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from ..errors import BinaryNotFoundError
from .platform import PlatformProfile
from .staging import ResourceStaging


WhichFn = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class ResolvedEngine:
    """Outcome of a resolution: the binary plus anything to delete on close."""

    binary: Path
    library: Optional[Path] = None
    staged_files: Tuple[Path, ...] = ()


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class BinaryResolver:
    """Resolve the engine binary once per profile and reuse the answer."""

    def __init__(
        self,
        staging: ResourceStaging,
        *,
        binary_override: Optional[str] = None,
        which: WhichFn = shutil.which,
    ) -> None:
        self.staging = staging
        self.binary_override = binary_override
        self.which = which
        self._cache: Dict[str, ResolvedEngine] = {}

    def resolve(self, profile: PlatformProfile, working_directory: Path) -> ResolvedEngine:
        """Return a runnable engine for ``profile``.

        Raises:
          BinaryNotFoundError: No executable was found.
          ResourceExtractionError: Staging failed.
        """

        if self.binary_override:
            override = Path(self.binary_override).expanduser()
            if not _is_executable(override):
                raise BinaryNotFoundError(f"Configured engine binary is not executable: {override}")
            return ResolvedEngine(binary=override)

        if profile.needs_staging:
            staged = self.staging.stage(profile, working_directory)
            return ResolvedEngine(
                binary=staged.binary,
                library=staged.library,
                staged_files=staged.files,
            )

        cached = self._cache.get(profile.name)
        if cached is not None and _is_executable(cached.binary):
            return cached
        resolved = ResolvedEngine(binary=self._locate_system_binary(profile))
        self._cache[profile.name] = resolved
        return resolved

    def _locate_system_binary(self, profile: PlatformProfile) -> Path:
        for candidate in profile.system_path_candidates:
            path = Path(candidate)
            if _is_executable(path):
                return path
        found = self.which(profile.executable_name)
        if found:
            path = Path(found.strip())
            if _is_executable(path):
                return path
        raise BinaryNotFoundError(
            f"{profile.executable_name} not found or not executable on {profile.name}"
        )
