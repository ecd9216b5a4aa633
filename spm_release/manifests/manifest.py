# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
spm.json manifest assembly.

The manifest is the index a package manager reads to find the right archive
for a platform. It comes in three shapes, chosen by configuration:

  flat:
    {"version": 0, "description": "...", "platforms": [entry, ...]}

  split (by artifact type):
    {"version": 0, "description": "...", "loadable": [...], "static": [...]}

  extensions (keyed by extension name):
    {"version": 0, "extensions": {"<name>": {"description": "...", "platforms": [...]}}}

Every entry carries exactly os, cpu, asset_name, asset_sha256 and asset_md5.
Only assets that were actually uploaded are ever passed in, so the manifest
cannot reference a missing asset. Entries are ordered by input position, not
by the order uploads happened to finish.
"""

import json
import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

from spm_release.logging.logger import get_logger
from spm_release.models import ArtifactType, UploadedAsset
from spm_release.utils.hashing import compute_sha256

_logger: logging.Logger = get_logger(__name__)

MANIFEST_ASSET_NAME = "spm.json"
MANIFEST_CONTENT_TYPE = "application/json"
MANIFEST_VERSION = 0

_ENTRY_FIELDS: frozenset[str] = frozenset({"os", "cpu", "asset_name", "asset_sha256", "asset_md5"})


class ManifestSchema(str, Enum):
    FLAT = "flat"
    SPLIT = "split"
    EXTENSIONS = "extensions"


def _listed_entries(
    assets: Sequence[UploadedAsset],
    artifact_type: ArtifactType | None = None,
) -> list[dict[str, str]]:
    selected = [
        asset
        for asset in sorted(assets, key=lambda a: a.order)
        if asset.listed and (artifact_type is None or asset.artifact_type is artifact_type)
    ]
    return [asset.manifest_entry() for asset in selected]


def assemble_manifest(
    schema: ManifestSchema,
    assets: Sequence[UploadedAsset],
    description: str = "",
    extension_name: str | None = None,
) -> dict[str, Any]:
    """
    Build the manifest document for the given schema.

    Args:
        schema: Which of the three shapes to produce.
        assets: Successfully uploaded assets, in any order.
        description: Free-form description carried into the document.
        extension_name: Key for the extensions schema. Required there.

    Returns:
        A JSON-serializable dict.
    """
    if schema is ManifestSchema.FLAT:
        document: dict[str, Any] = {
            "version": MANIFEST_VERSION,
            "description": description,
            "platforms": _listed_entries(assets),
        }
    elif schema is ManifestSchema.SPLIT:
        document = {
            "version": MANIFEST_VERSION,
            "description": description,
            "loadable": _listed_entries(assets, ArtifactType.LOADABLE),
            "static": _listed_entries(assets, ArtifactType.STATIC),
        }
    elif schema is ManifestSchema.EXTENSIONS:
        if not extension_name:
            raise ValueError("The extensions manifest schema needs an extension name")
        document = {
            "version": MANIFEST_VERSION,
            "extensions": {
                extension_name: {
                    "description": description,
                    "platforms": _listed_entries(assets),
                }
            },
        }
    else:
        raise ValueError(f"Unknown manifest schema: {schema!r}")

    _logger.info(
        "Manifest assembled",
        extra={"schema": schema.value, "asset_count": len(assets)},
    )
    return document


def serialize_manifest(document: dict[str, Any]) -> bytes:
    """UTF-8 JSON, two-space indent, trailing newline."""
    return (json.dumps(document, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _check_entries(entries: Any, where: str) -> None:
    if not isinstance(entries, list):
        raise ValueError(f"Manifest field {where!r} must be a list")
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Manifest entry {where}[{index}] must be an object")
        missing = _ENTRY_FIELDS - set(entry)
        if missing:
            raise ValueError(
                f"Manifest entry {where}[{index}] is missing required fields: "
                f"{', '.join(sorted(missing))}"
            )


def load_manifest(data: bytes | str) -> tuple[ManifestSchema, dict[str, Any]]:
    """
    Parse and validate a manifest document, detecting its schema.

    Raises:
        ValueError: If the JSON is invalid, the version is unsupported, or
                    required keys are missing.
    """
    try:
        document = json.loads(data)
    except json.JSONDecodeError as err:
        raise ValueError(f"Manifest is not valid JSON: {err}") from err

    if not isinstance(document, dict):
        raise ValueError("Manifest must be a JSON object")
    if document.get("version") != MANIFEST_VERSION:
        raise ValueError(f"Unsupported manifest version: {document.get('version')!r}")

    if "platforms" in document:
        _check_entries(document["platforms"], "platforms")
        return ManifestSchema.FLAT, document
    if "loadable" in document or "static" in document:
        missing = {"loadable", "static"} - set(document)
        if missing:
            raise ValueError(f"Manifest is missing required fields: {', '.join(sorted(missing))}")
        _check_entries(document["loadable"], "loadable")
        _check_entries(document["static"], "static")
        return ManifestSchema.SPLIT, document
    if "extensions" in document:
        extensions = document["extensions"]
        if not isinstance(extensions, dict):
            raise ValueError("Manifest field 'extensions' must be an object")
        for name, extension in extensions.items():
            if not isinstance(extension, dict) or "platforms" not in extension:
                raise ValueError(f"Extension {name!r} is missing its platforms list")
            _check_entries(extension["platforms"], f"extensions.{name}.platforms")
        return ManifestSchema.EXTENSIONS, document

    raise ValueError("Manifest has no platforms, loadable/static, or extensions section")


def manifest_entries(document: dict[str, Any]) -> list[dict[str, str]]:
    """Every platform entry in a loaded manifest, whatever its schema."""
    if "platforms" in document:
        return list(document["platforms"])
    if "loadable" in document or "static" in document:
        return list(document.get("loadable", [])) + list(document.get("static", []))
    entries: list[dict[str, str]] = []
    for extension in document.get("extensions", {}).values():
        entries.extend(extension.get("platforms", []))
    return entries


def verify_manifest_assets(directory: Path, document: dict[str, Any]) -> list[str]:
    """
    Check that every asset a manifest lists is present in `directory` with
    the listed SHA256. Returns one problem description per bad entry.
    """
    problems: list[str] = []
    for entry in manifest_entries(document):
        name = entry["asset_name"]
        path = directory / name
        if not path.is_file():
            problems.append(f"{name}: listed in manifest but missing")
            continue
        if compute_sha256(path) != entry["asset_sha256"]:
            problems.append(f"{name}: sha256 differs from manifest")
    if problems:
        _logger.error("Manifest does not match assets", extra={"problems": problems})
    return problems
