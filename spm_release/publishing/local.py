# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Directory-backed publisher used for dry runs.

Assets land in `<root>/<tag>/<name>` instead of on GitHub, which makes it
possible to inspect exactly what a real run would upload. Releases are
always "found". Writing an existing name fails the same way GitHub rejects a
duplicate asset.
"""

import asyncio
import logging
import zlib
from pathlib import Path

from spm_release.exceptions import AssetUploadError
from spm_release.logging.logger import get_logger
from spm_release.publishing.base import PublishedAsset, ReleaseRef
from spm_release.utils.filesystem import atomic_write_bytes

_logger: logging.Logger = get_logger(__name__)


class LocalDirectoryPublisher:
    def __init__(self, root: Path) -> None:
        self._root = root
        self._release_dirs: dict[int, Path] = {}
        self._next_asset_id = 1

    async def find_release(self, owner: str, repo: str, tag: str) -> ReleaseRef:
        release_id = zlib.crc32(f"{owner}/{repo}@{tag}".encode("utf-8"))
        release_dir = self._root / tag
        self._release_dirs[release_id] = release_dir
        _logger.info(
            "Using local release directory",
            extra={"tag": tag, "path": str(release_dir)},
        )
        return ReleaseRef(id=release_id, tag=tag, html_url=release_dir.resolve().as_uri())

    async def upload(
        self,
        owner: str,
        repo: str,
        release_id: int,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> PublishedAsset:
        release_dir = self._release_dirs.get(release_id)
        if release_dir is None:
            raise AssetUploadError(f"Failed to upload {name}: unknown release id {release_id}")

        target = release_dir / name
        if target.exists():
            raise AssetUploadError(
                f"Failed to upload {name}: an asset with this name already exists at {target}"
            )

        try:
            await asyncio.to_thread(atomic_write_bytes, target, data)
        except OSError as err:
            raise AssetUploadError(f"Failed to upload {name}: {err}") from err

        asset_id = self._next_asset_id
        self._next_asset_id += 1
        url = target.resolve().as_uri()
        _logger.info("Wrote asset", extra={"asset": name, "bytes": len(data), "path": str(target)})
        return PublishedAsset(id=asset_id, url=url, download_url=url)
