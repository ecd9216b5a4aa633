# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

import asyncio
from pathlib import Path

import pytest

from spm_release.exceptions import AssetUploadError
from spm_release.publishing.local import LocalDirectoryPublisher


async def _publish(root: Path, names: list[str]):  # type: ignore[no-untyped-def]
    publisher = LocalDirectoryPublisher(root)
    release = await publisher.find_release("acme", "foo", "v1.0.0")
    return [await publisher.upload("acme", "foo", release.id, name, name.encode()) for name in names]


class TestLocalDirectoryPublisher:
    def test_writes_assets_under_tag_directory(self, tmp_path: Path) -> None:
        published = asyncio.run(_publish(tmp_path, ["a.tar.gz", "spm.json"]))

        assert (tmp_path / "v1.0.0" / "a.tar.gz").read_bytes() == b"a.tar.gz"
        assert (tmp_path / "v1.0.0" / "spm.json").read_bytes() == b"spm.json"
        assert [asset.id for asset in published] == [1, 2]
        assert published[0].url.startswith("file://")

    def test_duplicate_name_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(AssetUploadError, match="already exists"):
            asyncio.run(_publish(tmp_path, ["a.zip", "a.zip"]))

    def test_unknown_release_rejected(self, tmp_path: Path) -> None:
        publisher = LocalDirectoryPublisher(tmp_path)
        with pytest.raises(AssetUploadError, match="unknown release"):
            asyncio.run(publisher.upload("acme", "foo", 123, "a.zip", b"zip"))

    def test_release_id_is_stable_per_tag(self, tmp_path: Path) -> None:
        publisher = LocalDirectoryPublisher(tmp_path)
        first = asyncio.run(publisher.find_release("acme", "foo", "v1"))
        again = asyncio.run(publisher.find_release("acme", "foo", "v1"))
        other = asyncio.run(publisher.find_release("acme", "foo", "v2"))

        assert first.id == again.id
        assert first.id != other.id
