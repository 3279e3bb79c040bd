"""
Module: tests/unit/test_staging.py

What:
    Validate extraction of bundled engine resources into the working directory.

Why:
    On hosts without a system SQLCipher the tool runs the binary it stages; a
    missing executable bit or a silently ignored missing resource would only
    show up later as an obscure spawn failure.

How:
    Stage the Windows profile from a :class:`DirectoryResourceProvider` backed
    by ``tmp_path`` and inspect the written files.
"""

import os

import pytest

from dbcrypt.engine.platform import POSIX, WINDOWS
from dbcrypt.engine.staging import (
    DirectoryResourceProvider,
    PackageResourceProvider,
    ResourceStaging,
    default_working_directory,
)
from dbcrypt.errors import ErrorKind, ResourceExtractionError


@pytest.fixture
def resource_dir(tmp_path):
    root = tmp_path / "resources"
    root.mkdir()
    (root / "sqlite3.exe").write_bytes(b"MZ-engine")
    (root / "sqlite3.dll").write_bytes(b"MZ-library")
    return root


def test_stage_writes_binary_and_library(tmp_path, resource_dir):
    workdir = tmp_path / "work"
    staged = ResourceStaging(DirectoryResourceProvider(resource_dir)).stage(WINDOWS, workdir)
    assert staged.binary == workdir / "sqlite3.exe"
    assert staged.library == workdir / "sqlite3.dll"
    assert staged.binary.read_bytes() == b"MZ-engine"
    assert staged.library.read_bytes() == b"MZ-library"
    assert staged.files == (staged.binary, staged.library)
    assert os.access(staged.binary, os.X_OK)


def test_missing_resource_raises_extraction_error(tmp_path, resource_dir):
    (resource_dir / "sqlite3.dll").unlink()
    staging = ResourceStaging(DirectoryResourceProvider(resource_dir))
    with pytest.raises(ResourceExtractionError) as excinfo:
        staging.stage(WINDOWS, tmp_path / "work")
    assert excinfo.value.kind is ErrorKind.RESOURCE_EXTRACTION_FAILED
    assert "sqlite3.dll" in str(excinfo.value)


def test_profile_without_bundled_binary_cannot_stage(tmp_path, resource_dir):
    with pytest.raises(ResourceExtractionError):
        ResourceStaging(DirectoryResourceProvider(resource_dir)).stage(POSIX, tmp_path / "work")


def test_package_provider_reports_missing_resource():
    with pytest.raises(FileNotFoundError):
        PackageResourceProvider().fetch("definitely-not-shipped.exe")


def test_default_working_directory_uses_temp_dir(tmp_path):
    # tests/conftest.py points tempfile.tempdir at tmp_path
    assert default_working_directory("dbcrypt-engine") == tmp_path / "dbcrypt-engine"
