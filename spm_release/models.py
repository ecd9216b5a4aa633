# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Core data model for spm-release.

Everything here is an immutable value object. Platforms come out of the
parser, archive plans out of the artifact planner, and uploaded assets out of
the orchestrator. Nothing in this module does I/O.
"""

from dataclasses import dataclass
from enum import Enum


class OperatingSystem(str, Enum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


class Cpu(str, Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"


class ArchiveKind(str, Enum):
    """Container format for a platform archive."""

    TARGZ = "targz"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        return "tar.gz" if self is ArchiveKind.TARGZ else "zip"

    @property
    def content_type(self) -> str:
        return "application/gzip" if self is ArchiveKind.TARGZ else "application/zip"


class ArtifactType(str, Enum):
    """Which manifest section an archive belongs to in the split schema."""

    LOADABLE = "loadable"
    STATIC = "static"


@dataclass(frozen=True)
class PlatformTarget:
    """One (os, cpu) pair and the concrete files that ship for it."""

    os: OperatingSystem
    cpu: Cpu
    paths: tuple[str, ...]

    @property
    def key(self) -> str:
        return f"{self.os.value}-{self.cpu.value}"


@dataclass(frozen=True)
class FileEntry:
    """A single archive member: basename plus raw bytes."""

    name: str
    data: bytes


@dataclass(frozen=True)
class ArchiveResult:
    data: bytes
    kind: ArchiveKind

    @property
    def extension(self) -> str:
        return self.kind.extension


@dataclass(frozen=True)
class ArchivePlan:
    """
    One archive to build and upload.

    `order` is the plan's position in input order and is what the manifest
    sorts on, since uploads finish in arbitrary order. `listed` is False for
    archives that are uploaded but deliberately kept out of the manifest.
    """

    platform: PlatformTarget
    paths: tuple[str, ...]
    artifact_type: ArtifactType | None = None
    listed: bool = True
    order: int = 0


@dataclass(frozen=True)
class UploadedAsset:
    """Result of one successful archive upload."""

    os: OperatingSystem
    cpu: Cpu
    asset_name: str
    asset_sha256: str
    asset_md5: str
    artifact_type: ArtifactType | None = None
    listed: bool = True
    url: str = ""
    order: int = 0

    def manifest_entry(self) -> dict[str, str]:
        """The five fields every manifest platform entry carries."""
        return {
            "os": self.os.value,
            "cpu": self.cpu.value,
            "asset_name": self.asset_name,
            "asset_sha256": self.asset_sha256,
            "asset_md5": self.asset_md5,
        }
