# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Platform mapping parser.

Turns the `platforms` input into an ordered list of PlatformTarget records:

    linux-x86_64: dist/linux/*.so
    windows-x86_64:
      - dist/win/*.dll
      - dist/win/*.lib

Each key is split on its first `-` into an (os, cpu) pair. Each value is one
glob or a list of globs, expanded through a GlobResolver. A pattern matching
nothing is fatal.
"""

import logging
from collections.abc import Mapping
from typing import Any

import yaml

from spm_release.exceptions import ConfigurationError, InvalidPlatformKind, NoMatchingFiles
from spm_release.logging.logger import get_logger
from spm_release.models import Cpu, OperatingSystem, PlatformTarget
from spm_release.platforms.resolver import FilesystemGlobResolver, GlobResolver

_logger: logging.Logger = get_logger(__name__)


def parse_platform_key(key: str) -> tuple[OperatingSystem, Cpu]:
    """
    Split `<os>-<cpu>` into its enum members.

    Raises:
        InvalidPlatformKind: If the separator is missing or either token is unknown.
    """
    os_token, sep, cpu_token = str(key).partition("-")
    if not sep:
        raise InvalidPlatformKind(f"Platform key {key!r} is not of the form '<os>-<cpu>'")

    try:
        os_kind = OperatingSystem(os_token)
    except ValueError:
        allowed = ", ".join(member.value for member in OperatingSystem)
        raise InvalidPlatformKind(
            f"Unknown operating system {os_token!r} in platform key {key!r} (expected one of: {allowed})"
        ) from None

    try:
        cpu_kind = Cpu(cpu_token)
    except ValueError:
        allowed = ", ".join(member.value for member in Cpu)
        raise InvalidPlatformKind(
            f"Unknown CPU {cpu_token!r} in platform key {key!r} (expected one of: {allowed})"
        ) from None

    return os_kind, cpu_kind


def load_platform_mapping(raw: str | Mapping[str, Any]) -> dict[str, Any]:
    """Accept YAML text or an already-parsed mapping and return a plain dict."""
    if isinstance(raw, Mapping):
        return dict(raw)

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Invalid YAML in platforms input: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigurationError(
            f"Platforms input must be a YAML mapping, got {type(parsed).__name__}"
        )
    return parsed


def _patterns_for(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        patterns = [value]
    elif isinstance(value, list):
        patterns = value
    else:
        raise ConfigurationError(
            f"Paths for platform {key!r} must be a string or a list of strings, "
            f"got {type(value).__name__}"
        )

    if not patterns:
        raise ConfigurationError(f"Platform {key!r} has an empty list of paths")

    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern.strip():
            raise ConfigurationError(f"Platform {key!r} has an invalid path entry: {pattern!r}")
    return patterns


def _expand_patterns(key: str, patterns: list[str], resolver: GlobResolver) -> tuple[str, ...]:
    seen: set[str] = set()
    paths: list[str] = []
    for pattern in patterns:
        matches = resolver.expand(pattern)
        if not matches:
            raise NoMatchingFiles(f"Pattern {pattern!r} for platform {key!r} matched no files")
        for path in matches:
            if path not in seen:
                seen.add(path)
                paths.append(path)
    return tuple(paths)


def parse_platforms(
    raw: str | Mapping[str, Any],
    resolver: GlobResolver | None = None,
) -> list[PlatformTarget]:
    """
    Parse the platforms input into PlatformTargets, preserving input order.

    Args:
        raw: YAML text or a mapping of platform key to glob(s).
        resolver: Glob expansion backend. Defaults to the local filesystem.

    Returns:
        One PlatformTarget per key, in mapping order.

    Raises:
        ConfigurationError: Malformed input or an unknown os/cpu token.
        NoMatchingFiles: A pattern expanded to zero files.
    """
    if resolver is None:
        resolver = FilesystemGlobResolver()

    mapping = load_platform_mapping(raw)
    if not mapping:
        raise ConfigurationError("Platforms input is empty, nothing to release")

    targets: list[PlatformTarget] = []
    seen_keys: set[tuple[OperatingSystem, Cpu]] = set()
    for key, value in mapping.items():
        os_kind, cpu_kind = parse_platform_key(key)
        if (os_kind, cpu_kind) in seen_keys:
            raise ConfigurationError(f"Platform {key!r} is listed more than once")
        seen_keys.add((os_kind, cpu_kind))

        paths = _expand_patterns(key, _patterns_for(key, value), resolver)
        targets.append(PlatformTarget(os=os_kind, cpu=cpu_kind, paths=paths))
        _logger.debug(
            "Resolved platform",
            extra={"platform": key, "file_count": len(paths)},
        )

    _logger.info("Platforms parsed", extra={"platform_count": len(targets)})
    return targets
