# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Asset publisher boundary.

The orchestrator talks to the release host only through AssetPublisher:
find the release for a tag, then upload named byte buffers to it. Each
upload call is attempted exactly once. A failure raises AssetUploadError and
is never retried here.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ReleaseRef:
    """Identity of a release, resolved once and shared read-only by every upload."""

    id: int
    tag: str
    html_url: str = ""


@dataclass(frozen=True)
class PublishedAsset:
    id: int
    url: str
    download_url: str = ""


class AssetPublisher(Protocol):
    async def find_release(self, owner: str, repo: str, tag: str) -> ReleaseRef:
        """Raises ResolutionError if no release exists for `tag`."""
        ...

    async def upload(
        self,
        owner: str,
        repo: str,
        release_id: int,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> PublishedAsset:
        """Raises AssetUploadError on network, auth or duplicate-name failures."""
        ...
