# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the spm-release CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. No print() calls: everything goes through the structured logger, and
failures additionally become an ::error:: annotation when running in Actions.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from spm_release.checksums.integrity import verify_checksums
from spm_release.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from spm_release.config.loader import load_config, load_config_from_inputs
from spm_release.config.schema import ReleaseConfig
from spm_release.exceptions import ConfigurationError, ReleaseError
from spm_release.logging.logger import configure_logging, get_logger
from spm_release.manifests.manifest import (
    MANIFEST_ASSET_NAME,
    load_manifest,
    verify_manifest_assets,
)
from spm_release.publishing.github import GitHubReleasePublisher
from spm_release.publishing.local import LocalDirectoryPublisher
from spm_release.release.orchestrator import ReleaseOrchestrator, ReleaseOutputs, plan_release
from spm_release.runtime.environment import (
    ReleaseEnvironment,
    check_minimum_python,
    get_system_info,
    resolve_release_environment,
)
from spm_release.runtime.outputs import report_failure, write_step_outputs
from spm_release.utils.filesystem import safe_read

DEFAULT_DRY_RUN_DIR = "dist/spm-release"


def _load_and_configure(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, ReleaseConfig | None, logging.Logger]:
    """
    The shared setup every release command needs: load config, set log level.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller should return it immediately.
    """
    logger = get_logger(f"spm_release.cli.{command_name}", log_level=args.log_level or "INFO")
    check_minimum_python()

    try:
        if args.config is not None:
            config = load_config(Path(args.config))
        else:
            config = load_config_from_inputs()
    except ConfigurationError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        report_failure(str(err))
        return CONFIG_ERROR, None, logger

    configure_logging(args.log_level or config.log_level)

    system_info = get_system_info()
    logger.debug(
        "Configuration loaded",
        extra={
            "command": command_name,
            "project": config.project_name,
            "schema": config.manifest_schema.value,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
        },
    )
    return SUCCESS, config, logger


async def _run_release(
    config: ReleaseConfig,
    environment: ReleaseEnvironment,
    dry_run: bool,
    output_dir: Path,
) -> ReleaseOutputs:
    if dry_run:
        publisher = LocalDirectoryPublisher(output_dir)
        return await ReleaseOrchestrator(config, environment, publisher).run()

    async with GitHubReleasePublisher(
        token=config.github_token.get_secret_value(),
        api_url=config.api_url,
        uploads_url=config.uploads_url,
        timeout=config.request_timeout,
    ) as publisher:
        return await ReleaseOrchestrator(config, environment, publisher).run()


def handle_publish(args: argparse.Namespace) -> int:
    """Package every platform, upload the archives and publish spm.json."""
    exit_code, config, logger = _load_and_configure(args, "publish")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        environment = resolve_release_environment(repository=args.repository, tag=args.tag)
        logger.info(
            "Starting release",
            extra={
                "repository": environment.repository,
                "tag": environment.tag,
                "dry_run": args.dry_run,
            },
        )
        output_dir = Path(args.output_dir or DEFAULT_DRY_RUN_DIR)
        outputs = asyncio.run(_run_release(config, environment, args.dry_run, output_dir))
    except ConfigurationError as err:
        logger.error("Configuration error", extra={"command": "publish", "error": str(err)})
        report_failure(str(err))
        return CONFIG_ERROR
    except ReleaseError as err:
        logger.error("Release failed", extra={"command": "publish", "error": str(err)})
        report_failure(str(err))
        return RUNTIME_ERROR
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": "publish", "error": str(err)},
            exc_info=True,
        )
        report_failure(str(err))
        return RUNTIME_ERROR

    write_step_outputs(outputs.to_step_outputs())
    logger.info(
        "Release complete",
        extra={"platforms": outputs.number_platforms, "assets": len(outputs.assets)},
    )
    return SUCCESS


def _inspect_environment(args: argparse.Namespace, config: ReleaseConfig) -> ReleaseEnvironment:
    try:
        return resolve_release_environment(repository=args.repository, tag=args.tag)
    except ConfigurationError:
        # Inspection works outside CI; placeholders only affect rendered names.
        return ReleaseEnvironment(
            owner="local",
            repo=config.project_name,
            tag=args.tag or "unreleased",
        )


def handle_inspect(args: argparse.Namespace) -> int:
    """Resolve platforms and log the archives a publish would upload."""
    exit_code, config, logger = _load_and_configure(args, "inspect")
    if exit_code != SUCCESS or config is None:
        return exit_code

    environment = _inspect_environment(args, config)
    try:
        release_plan = plan_release(config, environment)
    except ConfigurationError as err:
        logger.error("Configuration error", extra={"command": "inspect", "error": str(err)})
        return CONFIG_ERROR
    except ReleaseError as err:
        logger.error("Inspection failed", extra={"command": "inspect", "error": str(err)})
        return RUNTIME_ERROR

    for planned in release_plan.assets:
        plan = planned.plan
        logger.info(
            "Planned asset",
            extra={
                "platform": plan.platform.key,
                "asset": planned.asset_name,
                "archive_kind": planned.kind.value,
                "artifact_type": plan.artifact_type.value if plan.artifact_type else None,
                "listed": plan.listed,
                "files": list(plan.paths),
            },
        )

    logger.info(
        "Inspection complete",
        extra={
            "platforms": len(release_plan.platforms),
            "assets": len(release_plan.assets),
            "manifest": not config.skip_manifest,
        },
    )
    return SUCCESS


def handle_verify(args: argparse.Namespace) -> int:
    """
    Check downloaded assets against the checksum lines a publish produced.
    When the directory also holds spm.json, every asset it lists must be
    present with the listed digest.
    """
    logger = get_logger("spm_release.cli.verify", log_level=args.log_level or "INFO")

    if args.checksums is None or args.dir is None:
        logger.error("verify needs both --checksums and --dir")
        return USER_ERROR

    checksum_path = Path(args.checksums)
    asset_dir = Path(args.dir)
    if not asset_dir.is_dir():
        logger.error("Asset directory not found", extra={"path": str(asset_dir)})
        return USER_ERROR

    try:
        content = safe_read(checksum_path)
    except OSError as err:
        logger.error("Cannot read checksum file", extra={"path": str(checksum_path), "error": str(err)})
        return USER_ERROR

    try:
        result = verify_checksums(asset_dir, content)
    except OSError as err:
        logger.error("Verification failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR

    if not result.is_valid:
        logger.error(
            "Verification failed",
            extra={
                "mismatches": result.mismatches,
                "missing": result.missing_files,
                "errors": result.errors,
            },
        )
        return VALIDATION_ERROR

    manifest_path = asset_dir / MANIFEST_ASSET_NAME
    if manifest_path.is_file():
        try:
            schema, document = load_manifest(manifest_path.read_bytes())
        except ValueError as err:
            logger.error("Invalid manifest", extra={"path": str(manifest_path), "error": str(err)})
            return VALIDATION_ERROR
        if verify_manifest_assets(asset_dir, document):
            return VALIDATION_ERROR
        logger.info("Manifest matches assets", extra={"schema": schema.value})

    logger.info("Verification passed", extra={"checked_count": result.checked_count})
    return SUCCESS
