# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
GitHub Releases publisher over httpx.

Two endpoints are used:

    GET  {api_url}/repos/{owner}/{repo}/releases/tags/{tag}
    POST {uploads_url}/repos/{owner}/{repo}/releases/{release_id}/assets?name=...

One AsyncClient is shared by every upload in a run, so use the publisher as
an async context manager. Tests pass an httpx.MockTransport via `transport`.
"""

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx

from spm_release.exceptions import AssetUploadError, ResolutionError
from spm_release.logging.logger import get_logger
from spm_release.publishing.base import PublishedAsset, ReleaseRef

_logger: logging.Logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_UPLOADS_URL = "https://uploads.github.com"
DEFAULT_TIMEOUT_S = 60.0
USER_AGENT = "spm-release"


class GitHubReleasePublisher:
    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        uploads_url: str = DEFAULT_UPLOADS_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._uploads_url = uploads_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubReleasePublisher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def find_release(self, owner: str, repo: str, tag: str) -> ReleaseRef:
        url = f"{self._api_url}/repos/{owner}/{repo}/releases/tags/{quote(tag, safe='')}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as err:
            raise ResolutionError(f"Failed to look up release {tag!r} in {owner}/{repo}: {err}") from err

        if response.status_code == 404:
            raise ResolutionError(f"No release found for tag {tag!r} in {owner}/{repo}")
        if response.is_error:
            raise ResolutionError(
                f"Failed to look up release {tag!r} in {owner}/{repo}: "
                f"HTTP {response.status_code} {_error_message(response)}"
            )

        try:
            payload = response.json()
            release = ReleaseRef(
                id=int(payload["id"]),
                tag=str(payload.get("tag_name", tag)),
                html_url=str(payload.get("html_url", "")),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as err:
            raise ResolutionError(
                f"Unexpected release payload for tag {tag!r} in {owner}/{repo}: {err!r}"
            ) from err
        _logger.info(
            "Resolved release",
            extra={"owner": owner, "repo": repo, "tag": tag, "release_id": release.id},
        )
        return release

    async def upload(
        self,
        owner: str,
        repo: str,
        release_id: int,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> PublishedAsset:
        url = f"{self._uploads_url}/repos/{owner}/{repo}/releases/{release_id}/assets"
        try:
            response = await self._client.post(
                url,
                params={"name": name},
                content=data,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as err:
            raise AssetUploadError(f"Failed to upload {name}: {err}") from err

        if response.status_code == 422:
            raise AssetUploadError(
                f"Failed to upload {name}: an asset with this name already exists on the release "
                f"({_error_message(response)})"
            )
        if response.is_error:
            raise AssetUploadError(
                f"Failed to upload {name}: HTTP {response.status_code} {_error_message(response)}"
            )

        try:
            payload = response.json()
            asset = PublishedAsset(
                id=int(payload["id"]),
                url=str(payload.get("url", "")),
                download_url=str(payload.get("browser_download_url", "")),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as err:
            raise AssetUploadError(f"Unexpected upload response for {name}: {err!r}") from err
        _logger.info(
            "Uploaded asset",
            extra={"asset": name, "bytes": len(data), "asset_id": asset.id},
        )
        return asset


def _error_message(response: httpx.Response) -> str:
    try:
        payload: Any = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(payload, dict) and "message" in payload:
        return str(payload["message"])
    return response.text.strip()
