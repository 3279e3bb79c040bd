"""Extraction of bundled engine resources into a private working directory.

What:
  Provide resource providers (``fetch(name) -> bytes``) and
  :class:`ResourceStaging`, which writes the engine binary and its auxiliary
  library into the session working directory.

Why:
  Some hosts have no trusted SQLCipher installation; the tool then runs a copy
  of the engine it ships. Keeping the byte source behind a provider protocol
  lets deployments point at a directory instead of package data, and lets tests
  stage fake binaries.

How:
  :class:`PackageResourceProvider` reads package data through
  :mod:`importlib.resources`; :class:`DirectoryResourceProvider` reads plain
  files. :meth:`ResourceStaging.stage` writes each resource, marks the binary
  executable, and returns the paths so the session can delete them on close.

Interfaces:
  :class:`ResourceProvider`, :class:`PackageResourceProvider`,
  :class:`DirectoryResourceProvider`, :class:`StagedEngine`,
  :class:`ResourceStaging`, :func:`default_working_directory`.

Invariants & Safety:
  - A missing resource or failed write always surfaces as
    :class:`~dbcrypt.errors.ResourceExtractionError`.
  - Staged files live only inside the working directory.
"""
from __future__ import annotations

import stat
import tempfile
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Optional, Protocol, Tuple

from ..errors import ResourceExtractionError
from .platform import PlatformProfile


class ResourceProvider(Protocol):
    """Source of bundled engine bytes."""

    def fetch(self, name: str) -> bytes:
        """Return the bytes of resource ``name``; raise ``FileNotFoundError``
        when it is absent."""


class PackageResourceProvider:
    """Read resources shipped as package data (``dbcrypt.resources``)."""

    def __init__(self, package: str = "dbcrypt.resources") -> None:
        self.package = package

    def fetch(self, name: str) -> bytes:
        entry = resources.files(self.package).joinpath(name)
        if not entry.is_file():
            raise FileNotFoundError(f"Resource not found: {name}")
        return entry.read_bytes()


class DirectoryResourceProvider:
    """Read resources from a plain directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def fetch(self, name: str) -> bytes:
        return (self.root / name).read_bytes()


@dataclass(frozen=True)
class StagedEngine:
    """Paths written by one staging run."""

    binary: Path
    library: Optional[Path] = None

    @property
    def files(self) -> Tuple[Path, ...]:
        return (self.binary,) if self.library is None else (self.binary, self.library)


def default_working_directory(name: str) -> Path:
    """Return ``<system temp dir>/<name>``."""

    return Path(tempfile.gettempdir()) / name


class ResourceStaging:
    """Materialise a profile's engine resources inside ``working_directory``."""

    def __init__(self, provider: ResourceProvider) -> None:
        self.provider = provider

    def stage(self, profile: PlatformProfile, working_directory: Path) -> StagedEngine:
        """Write the profile's binary (and library, if any) and return their paths.

        Raises:
          ResourceExtractionError: When the profile names no binary resource,
            a resource is missing, or the filesystem rejects the write.
        """

        if profile.binary_resource is None:
            raise ResourceExtractionError(f"Profile {profile.name} bundles no engine binary")
        try:
            working_directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceExtractionError(
                f"Unable to create working directory {working_directory}: {exc}"
            ) from exc
        binary = self._extract(profile.binary_resource, working_directory, executable=True)
        library = None
        if profile.library_resource is not None:
            library = self._extract(profile.library_resource, working_directory, executable=False)
        return StagedEngine(binary=binary, library=library)

    def _extract(self, name: str, target_dir: Path, *, executable: bool) -> Path:
        try:
            payload = self.provider.fetch(name)
        except FileNotFoundError as exc:
            raise ResourceExtractionError(f"Resource not found: {name}") from exc
        except OSError as exc:
            raise ResourceExtractionError(f"Unable to read resource {name}: {exc}") from exc

        target = target_dir / name
        try:
            target.write_bytes(payload)
            if executable:
                mode = target.stat().st_mode
                target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as exc:
            raise ResourceExtractionError(f"Unable to write resource {name} to {target}: {exc}") from exc
        return target
