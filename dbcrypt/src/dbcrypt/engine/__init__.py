"""Engine location, command protocol and subprocess execution."""

from .platform import MACOS, POSIX, WINDOWS, PlatformProfile, select_profile
from .process import EngineRunner, ProcessExecutor, RawOutput
from .protocol import CommandProtocolBuilder, CommandScript
from .resolver import BinaryResolver, ResolvedEngine
from .staging import (
    DirectoryResourceProvider,
    PackageResourceProvider,
    ResourceProvider,
    ResourceStaging,
    StagedEngine,
    default_working_directory,
)

__all__ = [
    "BinaryResolver",
    "CommandProtocolBuilder",
    "CommandScript",
    "DirectoryResourceProvider",
    "EngineRunner",
    "MACOS",
    "POSIX",
    "PackageResourceProvider",
    "PlatformProfile",
    "ProcessExecutor",
    "RawOutput",
    "ResolvedEngine",
    "ResourceProvider",
    "ResourceStaging",
    "StagedEngine",
    "WINDOWS",
    "default_working_directory",
    "select_profile",
]
