# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the archive builder.

Archives must round-trip byte for byte, contain only basenames, keep input
order, and come out identical every time they are built from the same input.
"""

import gzip
import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from spm_release.archive.builder import (
    DEFAULT_ARCHIVE_KINDS,
    archive_kind_for,
    build_archive,
    extract_archive,
    read_entries,
)
from spm_release.exceptions import ArchiveError, FileResolutionError
from spm_release.models import ArchiveKind, FileEntry, OperatingSystem

ENTRIES = [
    FileEntry(name="libfoo.so", data=b"\x7fELF" + bytes(range(256))),
    FileEntry(name="foo.h", data=b"int foo(void);\n"),
    FileEntry(name="empty.txt", data=b""),
]


class TestArchiveKindTable:
    def test_default_table(self) -> None:
        assert DEFAULT_ARCHIVE_KINDS == {
            OperatingSystem.LINUX: ArchiveKind.TARGZ,
            OperatingSystem.MACOS: ArchiveKind.TARGZ,
            OperatingSystem.WINDOWS: ArchiveKind.ZIP,
        }

    def test_windows_gets_zip(self) -> None:
        assert archive_kind_for(OperatingSystem.WINDOWS) is ArchiveKind.ZIP
        assert archive_kind_for(OperatingSystem.WINDOWS).extension == "zip"

    def test_unix_gets_targz(self) -> None:
        assert archive_kind_for(OperatingSystem.LINUX).extension == "tar.gz"
        assert archive_kind_for(OperatingSystem.MACOS).extension == "tar.gz"

    def test_overrides_take_precedence(self) -> None:
        overrides = {OperatingSystem.LINUX: ArchiveKind.ZIP}
        assert archive_kind_for(OperatingSystem.LINUX, overrides) is ArchiveKind.ZIP
        assert archive_kind_for(OperatingSystem.WINDOWS, overrides) is ArchiveKind.ZIP
        assert archive_kind_for(OperatingSystem.MACOS, overrides) is ArchiveKind.TARGZ


@pytest.mark.parametrize("kind", [ArchiveKind.TARGZ, ArchiveKind.ZIP])
class TestRoundTrip:
    def test_contents_round_trip(self, kind: ArchiveKind) -> None:
        data = build_archive(ENTRIES, kind).data
        members = extract_archive(data, kind)

        assert list(members) == [e.name for e in ENTRIES]
        for entry in ENTRIES:
            assert members[entry.name] == entry.data

    def test_result_carries_kind(self, kind: ArchiveKind) -> None:
        result = build_archive(ENTRIES, kind)
        assert result.kind is kind
        assert result.extension == kind.extension

    def test_build_is_deterministic(self, kind: ArchiveKind) -> None:
        assert build_archive(ENTRIES, kind).data == build_archive(ENTRIES, kind).data

    def test_order_changes_output(self, kind: ArchiveKind) -> None:
        reordered = list(reversed(ENTRIES))
        assert build_archive(ENTRIES, kind).data != build_archive(reordered, kind).data
        assert list(extract_archive(build_archive(reordered, kind).data, kind)) == [
            e.name for e in reordered
        ]

    def test_duplicate_names_rejected(self, kind: ArchiveKind) -> None:
        with pytest.raises(ArchiveError, match="Duplicate"):
            build_archive([ENTRIES[0], ENTRIES[0]], kind)

    def test_empty_input_rejected(self, kind: ArchiveKind) -> None:
        with pytest.raises(ArchiveError):
            build_archive([], kind)

    def test_path_like_names_rejected(self, kind: ArchiveKind) -> None:
        with pytest.raises(ArchiveError, match="basename"):
            build_archive([FileEntry(name="dir/libfoo.so", data=b"x")], kind)


class TestTarGzFormat:
    def test_is_gzip_over_tar_with_fixed_metadata(self) -> None:
        data = build_archive(ENTRIES, ArchiveKind.TARGZ).data
        assert data[:2] == b"\x1f\x8b"

        raw_tar = gzip.decompress(data)
        with tarfile.open(fileobj=io.BytesIO(raw_tar), mode="r:") as tar:
            members = tar.getmembers()

        assert all(m.isfile() for m in members)
        assert {m.mtime for m in members} == {0}
        assert {m.uid for m in members} == {0}
        assert {m.mode for m in members} == {0o644}

    def test_gzip_header_has_no_timestamp(self) -> None:
        data = build_archive(ENTRIES, ArchiveKind.TARGZ).data
        # Bytes 4..8 of the gzip header are MTIME.
        assert data[4:8] == b"\x00\x00\x00\x00"


class TestZipFormat:
    def test_fixed_timestamps_and_no_directories(self) -> None:
        data = build_archive(ENTRIES, ArchiveKind.ZIP).data
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            infos = zf.infolist()

        assert [i.filename for i in infos] == [e.name for e in ENTRIES]
        assert {i.date_time for i in infos} == {(1980, 1, 1, 0, 0, 0)}
        assert not any(i.is_dir() for i in infos)
        assert {i.compress_type for i in infos} == {zipfile.ZIP_DEFLATED}


class TestReadEntries:
    def test_reads_basenames_and_bytes(self, build_dir: Path) -> None:
        paths = [str(build_dir / "linux" / "libfoo.so"), str(build_dir / "windows" / "foo.dll")]
        entries = read_entries(paths)

        assert [e.name for e in entries] == ["libfoo.so", "foo.dll"]
        assert entries[1].data == b"MZ portable executable"

    def test_unreadable_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileResolutionError, match="Cannot read"):
            read_entries([str(tmp_path / "gone.so")])


def test_extract_rejects_garbage() -> None:
    with pytest.raises(ArchiveError):
        extract_archive(b"not an archive", ArchiveKind.ZIP)
    with pytest.raises(ArchiveError):
        extract_archive(b"not an archive", ArchiveKind.TARGZ)
