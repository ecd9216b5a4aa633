# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release orchestrator: drives one run from tag to published manifest.

States:

    RESOLVING_RELEASE -> EXPANDING_PLATFORMS -> PACKAGING_AND_UPLOADING
        -> ASSEMBLING_MANIFEST -> PUBLISHING_MANIFEST -> DONE

Any error moves the run to FAILED and is re-raised. There is no retry and
no partial success: if one platform fails, the others are still allowed to
finish (nothing is cancelled mid-upload), but no manifest is published and
no outputs are produced. Assets uploaded before the failure are left in place.

Packaging and uploading fan out as one asyncio task per archive. Tasks share
nothing but the read-only release id, and the manifest is assembled from
each task's own result, never from completion order.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from spm_release.archive.builder import archive_kind_for, build_archive, read_entries
from spm_release.checksums.integrity import compute_checksums, format_checksum_lines
from spm_release.config.schema import ReleaseConfig
from spm_release.exceptions import ConfigurationError
from spm_release.logging.logger import get_logger
from spm_release.manifests.manifest import (
    MANIFEST_ASSET_NAME,
    MANIFEST_CONTENT_TYPE,
    ManifestSchema,
    assemble_manifest,
    serialize_manifest,
)
from spm_release.models import ArchiveKind, ArchivePlan, PlatformTarget, UploadedAsset
from spm_release.platforms.artifacts import plan_archives
from spm_release.platforms.parser import parse_platforms
from spm_release.platforms.resolver import GlobResolver
from spm_release.publishing.base import AssetPublisher, ReleaseRef
from spm_release.release.naming import render_asset_name
from spm_release.runtime.environment import ReleaseEnvironment
from spm_release.utils.hashing import compute_sha256_bytes

_logger: logging.Logger = get_logger(__name__)


class RunState(str, Enum):
    PENDING = "pending"
    RESOLVING_RELEASE = "resolving_release"
    EXPANDING_PLATFORMS = "expanding_platforms"
    PACKAGING_AND_UPLOADING = "packaging_and_uploading"
    ASSEMBLING_MANIFEST = "assembling_manifest"
    PUBLISHING_MANIFEST = "publishing_manifest"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PlannedAsset:
    """An archive plan with its final asset name and container format."""

    plan: ArchivePlan
    asset_name: str
    kind: ArchiveKind


@dataclass(frozen=True)
class ReleasePlan:
    platforms: tuple[PlatformTarget, ...]
    assets: tuple[PlannedAsset, ...]


@dataclass(frozen=True)
class ReleaseOutputs:
    """What a successful run reports back to the workflow."""

    number_platforms: int
    manifest_url: str | None
    assets: tuple[UploadedAsset, ...]
    checksums: str

    def to_step_outputs(self) -> dict[str, str]:
        outputs = {
            "number_platforms": str(self.number_platforms),
            "checksums": self.checksums,
        }
        if self.manifest_url is not None:
            outputs["spm_link"] = self.manifest_url
        return outputs


def plan_release(
    config: ReleaseConfig,
    environment: ReleaseEnvironment,
    resolver: GlobResolver | None = None,
) -> ReleasePlan:
    """
    Parse platforms and decide every archive and its name, without uploading.

    Raises:
        ConfigurationError: Bad platform input, or two assets would share a name.
        FileResolutionError: A pattern matched nothing.
    """
    platforms = parse_platforms(config.platforms, resolver)
    split = config.manifest_schema is ManifestSchema.SPLIT
    plans = plan_archives(platforms, split=split)

    reserved: dict[str, str] = {}
    if not config.skip_manifest:
        reserved[MANIFEST_ASSET_NAME] = "the manifest"

    assets: list[PlannedAsset] = []
    for plan in plans:
        kind = archive_kind_for(plan.platform.os, config.archive_kinds)
        name = render_asset_name(
            config.effective_template,
            project=config.project_name,
            version=environment.version,
            plan=plan,
            kind=kind,
        )
        owner = f"platform {plan.platform.key}"
        if name in reserved:
            raise ConfigurationError(
                f"Asset name {name!r} for {owner} collides with {reserved[name]}; "
                f"include $OS, $CPU (and $TYPE for split manifests) in the template"
            )
        reserved[name] = owner
        assets.append(PlannedAsset(plan=plan, asset_name=name, kind=kind))

    return ReleasePlan(platforms=tuple(platforms), assets=tuple(assets))


class ReleaseOrchestrator:
    def __init__(
        self,
        config: ReleaseConfig,
        environment: ReleaseEnvironment,
        publisher: AssetPublisher,
        resolver: GlobResolver | None = None,
    ) -> None:
        self._config = config
        self._environment = environment
        self._publisher = publisher
        self._resolver = resolver
        self.state = RunState.PENDING
        self.failure_reason: str | None = None

    def _transition(self, state: RunState) -> None:
        _logger.info(
            "Run state changed",
            extra={"from_state": self.state.value, "to_state": state.value},
        )
        self.state = state

    def _fail(self, err: BaseException) -> None:
        self.failure_reason = str(err) or type(err).__name__
        _logger.error(
            "Run failed",
            extra={
                "failed_state": self.state.value,
                "error_type": type(err).__name__,
                "error": self.failure_reason,
            },
        )
        self.state = RunState.FAILED

    async def _package_and_upload(self, release: ReleaseRef, planned: PlannedAsset) -> UploadedAsset:
        plan = planned.plan
        entries = await asyncio.to_thread(read_entries, plan.paths)
        archive = await asyncio.to_thread(build_archive, entries, planned.kind)
        data = archive.data
        checksums = compute_checksums(data)

        _logger.info(
            "Built archive",
            extra={
                "platform": plan.platform.key,
                "asset": planned.asset_name,
                "entries": len(entries),
                "bytes": len(data),
                "sha256": checksums.sha256[:16] + "...",
            },
        )

        published = await self._publisher.upload(
            self._environment.owner,
            self._environment.repo,
            release.id,
            planned.asset_name,
            data,
            planned.kind.content_type,
        )

        return UploadedAsset(
            os=plan.platform.os,
            cpu=plan.platform.cpu,
            asset_name=planned.asset_name,
            asset_sha256=checksums.sha256,
            asset_md5=checksums.md5,
            artifact_type=plan.artifact_type,
            listed=plan.listed,
            url=published.url,
            order=plan.order,
        )

    async def _upload_all(
        self, release: ReleaseRef, planned_assets: Sequence[PlannedAsset]
    ) -> list[UploadedAsset]:
        results = await asyncio.gather(
            *(self._package_and_upload(release, planned) for planned in planned_assets),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            _logger.error(
                "Platform uploads failed",
                extra={"failed": len(failures), "total": len(results)},
            )
            raise failures[0]

        return [result for result in results if isinstance(result, UploadedAsset)]

    async def run(self) -> ReleaseOutputs:
        """
        Execute the whole run.

        Returns:
            ReleaseOutputs for the workflow.

        Raises:
            ReleaseError: Whatever stopped the run; `state` is FAILED afterwards.
        """
        env = self._environment
        try:
            self._transition(RunState.RESOLVING_RELEASE)
            release = await self._publisher.find_release(env.owner, env.repo, env.tag)

            self._transition(RunState.EXPANDING_PLATFORMS)
            release_plan = await asyncio.to_thread(plan_release, self._config, env, self._resolver)

            self._transition(RunState.PACKAGING_AND_UPLOADING)
            uploaded = await self._upload_all(release, release_plan.assets)
            uploaded.sort(key=lambda asset: asset.order)
            checksum_pairs = [(asset.asset_sha256, asset.asset_name) for asset in uploaded]

            manifest_url: str | None = None
            if self._config.skip_manifest:
                _logger.info("Skipping manifest", extra={"asset": MANIFEST_ASSET_NAME})
            else:
                self._transition(RunState.ASSEMBLING_MANIFEST)
                document = assemble_manifest(
                    self._config.manifest_schema,
                    uploaded,
                    description=self._config.description,
                    extension_name=self._config.effective_extension_name,
                )
                payload = serialize_manifest(document)

                self._transition(RunState.PUBLISHING_MANIFEST)
                published = await self._publisher.upload(
                    env.owner,
                    env.repo,
                    release.id,
                    MANIFEST_ASSET_NAME,
                    payload,
                    MANIFEST_CONTENT_TYPE,
                )
                manifest_url = published.url
                checksum_pairs.append((compute_sha256_bytes(payload), MANIFEST_ASSET_NAME))

            self._transition(RunState.DONE)
        except Exception as err:
            self._fail(err)
            raise

        outputs = ReleaseOutputs(
            number_platforms=len(release_plan.platforms),
            manifest_url=manifest_url,
            assets=tuple(uploaded),
            checksums=format_checksum_lines(checksum_pairs),
        )
        _logger.info(
            "Release published",
            extra={
                "tag": env.tag,
                "platforms": outputs.number_platforms,
                "assets": len(outputs.assets),
                "manifest_url": manifest_url,
            },
        )
        return outputs
