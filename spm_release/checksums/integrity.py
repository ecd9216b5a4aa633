# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Checksums for uploaded assets.

Every archive gets two digests: SHA256 (lowercase hex), which goes into the
step's checksum output and the manifest, and MD5 (base64), which the package
manager uses as a quick transfer check.

Checksum output format:
    <sha256hex>  <asset_name>
    <sha256hex>  <asset_name>

Two spaces between hash and name, matching GNU coreutils `sha256sum`, so the
output can be fed to `sha256sum -c` as-is. Lines appear in upload order with
the manifest last.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from spm_release.logging.logger import get_logger
from spm_release.utils.hashing import compute_md5_base64, compute_sha256, compute_sha256_bytes

_logger: logging.Logger = get_logger(__name__)

SHA256_HEX_LENGTH = 64


@dataclass(frozen=True)
class ArchiveChecksums:
    sha256: str
    md5: str


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking a directory against checksum lines."""

    is_valid: bool
    checked_count: int
    mismatches: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def compute_checksums(data: bytes) -> ArchiveChecksums:
    """Compute both digests over a finished archive buffer."""
    return ArchiveChecksums(sha256=compute_sha256_bytes(data), md5=compute_md5_base64(data))


def format_checksum_lines(entries: Iterable[tuple[str, str]]) -> str:
    """
    Render (sha256, asset_name) pairs as sha256sum-style lines.

    Order is preserved. Returns an empty string for no entries.
    """
    lines = [f"{sha256}  {name}" for sha256, name in entries]
    return "\n".join(lines) + "\n" if lines else ""


def parse_checksum_lines(content: str) -> dict[str, str]:
    """
    Parse sha256sum-style lines into {asset_name: sha256_hex}.

    Raises:
        ValueError: If a line is malformed or a hash has the wrong length.
    """
    checksums: dict[str, str] = {}
    for line_num, line in enumerate(content.strip().splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        parts = line.split("  ", maxsplit=1)
        if len(parts) != 2:
            raise ValueError(
                f"Invalid checksum format at line {line_num}: expected "
                f"'<sha256>  <asset_name>', got: {line!r}"
            )
        sha256_hex, name = parts
        if len(sha256_hex) != SHA256_HEX_LENGTH:
            raise ValueError(
                f"Invalid SHA256 hash length at line {line_num}: "
                f"expected {SHA256_HEX_LENGTH} chars, got {len(sha256_hex)}"
            )
        checksums[name] = sha256_hex.lower()
    return checksums


def verify_checksums(directory: Path, content: str) -> VerificationResult:
    """
    Check downloaded assets in `directory` against checksum lines.

    Reports every mismatch and missing file rather than stopping at the first.
    """
    try:
        expected = parse_checksum_lines(content)
    except ValueError as err:
        return VerificationResult(
            is_valid=False,
            checked_count=0,
            errors=[f"Failed to parse checksums: {err}"],
        )

    mismatches: list[str] = []
    missing_files: list[str] = []
    checked = 0

    for name, expected_hash in expected.items():
        file_path = directory / name
        if not file_path.is_file():
            missing_files.append(name)
            _logger.error("Asset missing during verification", extra={"asset": name})
            continue

        actual_hash = compute_sha256(file_path)
        checked += 1
        if actual_hash != expected_hash:
            mismatches.append(name)
            _logger.error(
                "Checksum mismatch",
                extra={
                    "asset": name,
                    "expected": expected_hash[:16] + "...",
                    "actual": actual_hash[:16] + "...",
                },
            )

    is_valid = not mismatches and not missing_files
    if is_valid:
        _logger.info("All checksums verified", extra={"checked_count": checked})
    else:
        _logger.error(
            "Checksum verification failed",
            extra={"mismatches": len(mismatches), "missing": len(missing_files)},
        )

    return VerificationResult(
        is_valid=is_valid,
        checked_count=checked,
        mismatches=mismatches,
        missing_files=missing_files,
    )
