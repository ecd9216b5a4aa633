# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Archive builder: packs file entries into a gzip-compressed tar or a zip.

Archives are flat: one member per file, named by basename, no directory
entries. Both formats are reproducible byte for byte for a fixed input order
and content:

  tar.gz: mtime=0, uid/gid=0, empty owner names, mode 0644, gzip mtime=0
  zip:    fixed 1980-01-01 timestamp, mode 0644, deflate

Which format a platform gets is decided by DEFAULT_ARCHIVE_KINDS below,
optionally overridden per operating system by configuration.
"""

import gzip
import io
import logging
import os
import tarfile
import zipfile
from collections.abc import Iterable, Mapping, Sequence

from spm_release.exceptions import ArchiveError, FileResolutionError
from spm_release.logging.logger import get_logger
from spm_release.models import ArchiveKind, ArchiveResult, FileEntry, OperatingSystem

_logger: logging.Logger = get_logger(__name__)

# zip cannot represent timestamps before 1980.
FIXED_ZIP_TIME: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
FILE_MODE: int = 0o644

DEFAULT_ARCHIVE_KINDS: Mapping[OperatingSystem, ArchiveKind] = {
    OperatingSystem.LINUX: ArchiveKind.TARGZ,
    OperatingSystem.MACOS: ArchiveKind.TARGZ,
    OperatingSystem.WINDOWS: ArchiveKind.ZIP,
}


def archive_kind_for(
    os_kind: OperatingSystem,
    overrides: Mapping[OperatingSystem, ArchiveKind] | None = None,
) -> ArchiveKind:
    """Look up the archive kind for an OS, consulting overrides first."""
    if overrides and os_kind in overrides:
        return overrides[os_kind]
    return DEFAULT_ARCHIVE_KINDS[os_kind]


def read_entries(paths: Iterable[str]) -> list[FileEntry]:
    """
    Read each path into a FileEntry named by its basename.

    Raises:
        FileResolutionError: If a file cannot be read.
    """
    entries: list[FileEntry] = []
    for path in paths:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as err:
            raise FileResolutionError(f"Cannot read {path}: {err}") from err
        entries.append(FileEntry(name=os.path.basename(path), data=data))
    return entries


def _check_entries(entries: Sequence[FileEntry]) -> None:
    if not entries:
        raise ArchiveError("Cannot build an archive with no files")
    seen: set[str] = set()
    for entry in entries:
        if not entry.name or "/" in entry.name or "\\" in entry.name:
            raise ArchiveError(f"Archive member name must be a plain basename, got {entry.name!r}")
        if entry.name in seen:
            raise ArchiveError(f"Duplicate archive member name {entry.name!r}")
        seen.add(entry.name)


def build_targz(entries: Sequence[FileEntry]) -> bytes:
    """Build a deterministic gzip-compressed tar stream."""
    _check_entries(entries)
    buffer = io.BytesIO()
    try:
        with gzip.GzipFile(fileobj=buffer, mode="wb", mtime=0) as gz:
            with tarfile.TarFile(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
                for entry in entries:
                    info = tarfile.TarInfo(name=entry.name)
                    info.size = len(entry.data)
                    info.mode = FILE_MODE
                    info.mtime = 0
                    info.uid = 0
                    info.gid = 0
                    info.uname = ""
                    info.gname = ""
                    tar.addfile(info, io.BytesIO(entry.data))
                    _logger.debug("Added tar entry", extra={"entry": entry.name, "size": info.size})
    except (OSError, tarfile.TarError) as err:
        raise ArchiveError(f"Failed to build tar.gz archive: {err}") from err
    return buffer.getvalue()


def build_zip(entries: Sequence[FileEntry]) -> bytes:
    """Build a deterministic zip container with deflated members."""
    _check_entries(entries)
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry in entries:
                info = zipfile.ZipInfo(filename=entry.name, date_time=FIXED_ZIP_TIME)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = (FILE_MODE & 0xFFFF) << 16
                info.create_system = 3  # unix, so external_attr is honoured on extract
                zf.writestr(info, entry.data)
                _logger.debug("Added zip entry", extra={"entry": entry.name, "size": len(entry.data)})
    except (OSError, zipfile.BadZipFile) as err:
        raise ArchiveError(f"Failed to build zip archive: {err}") from err
    return buffer.getvalue()


def build_archive(entries: Sequence[FileEntry], kind: ArchiveKind) -> ArchiveResult:
    """
    Pack entries into an archive of the given kind, in input order.

    Raises:
        ArchiveError: Empty input, duplicate names, or a packing failure.
    """
    if kind is ArchiveKind.TARGZ:
        return ArchiveResult(data=build_targz(entries), kind=kind)
    if kind is ArchiveKind.ZIP:
        return ArchiveResult(data=build_zip(entries), kind=kind)
    raise ArchiveError(f"Unsupported archive kind: {kind!r}")


def extract_archive(data: bytes, kind: ArchiveKind) -> dict[str, bytes]:
    """
    Read an archive back into {member name: bytes}, preserving member order.

    Used to verify what was packed; raises ArchiveError on a corrupt input.
    """
    members: dict[str, bytes] = {}
    try:
        if kind is ArchiveKind.TARGZ:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
                for info in tar.getmembers():
                    if not info.isfile():
                        continue
                    handle = tar.extractfile(info)
                    members[info.name] = handle.read() if handle is not None else b""
        else:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                for name in zf.namelist():
                    members[name] = zf.read(name)
    except (OSError, EOFError, tarfile.TarError, zipfile.BadZipFile) as err:
        raise ArchiveError(f"Failed to read {kind.extension} archive: {err}") from err
    return members
