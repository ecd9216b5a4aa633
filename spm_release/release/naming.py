# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Asset name templates.

Templates use `$NAME` placeholders (string.Template syntax):

    $PROJECT  project name
    $VERSION  release version (the tag)
    $TYPE     loadable / static, empty outside the split schema
    $OS       linux / macos / windows
    $CPU      x86_64 / aarch64

Placeholders are matched as exact tokens, so `$PROJECT_$VERSION` and
`${OS}x` both work. `$$` is a literal dollar sign. The archive extension is
appended after rendering, so a template never mentions `.tar.gz` or `.zip`
itself.
"""

import re
from string import Template

from spm_release.exceptions import ConfigurationError
from spm_release.models import ArchiveKind, ArchivePlan

PLACEHOLDERS: frozenset[str] = frozenset({"PROJECT", "VERSION", "TYPE", "OS", "CPU"})

DEFAULT_TEMPLATE = "$PROJECT-$VERSION-$OS-$CPU"
DEFAULT_SPLIT_TEMPLATE = "$PROJECT-$VERSION-$TYPE-$OS-$CPU"

_UNKNOWN_TOKEN = re.compile(r"\{?\w*\}?")


class _AssetNameTemplate(Template):
    # Case-sensitive, one of the known names and nothing longer.
    idpattern = "|".join(sorted(PLACEHOLDERS, key=len, reverse=True))
    flags = 0


def _unknown_placeholder(template: str) -> str:
    for match in _AssetNameTemplate.pattern.finditer(template):
        if match.group("invalid") is not None:
            start = match.start("invalid")
            return "$" + _UNKNOWN_TOKEN.match(template, start).group()
    return "$"


def validate_template(template: str) -> str:
    """
    Check that a template only uses known placeholders and renders to
    something non-empty.

    Raises:
        ConfigurationError: On unknown placeholders or invalid `$` usage.
    """
    if not template.strip():
        raise ConfigurationError("Asset name template must not be empty")
    try:
        _AssetNameTemplate(template).substitute({key: "x" for key in PLACEHOLDERS})
    except ValueError:
        raise ConfigurationError(
            f"Unknown placeholder {_unknown_placeholder(template)} in asset name template "
            f"{template!r} (allowed: {', '.join('$' + p for p in sorted(PLACEHOLDERS))})"
        ) from None
    return template


def render_asset_name(
    template: str,
    project: str,
    version: str,
    plan: ArchivePlan,
    kind: ArchiveKind,
) -> str:
    """Render the asset name for one archive plan, extension included."""
    validate_template(template)
    stem = _AssetNameTemplate(template).substitute(
        PROJECT=project,
        VERSION=version,
        TYPE=plan.artifact_type.value if plan.artifact_type is not None else "",
        OS=plan.platform.os.value,
        CPU=plan.platform.cpu.value,
    )
    if "/" in stem or "\\" in stem:
        raise ConfigurationError(f"Asset name {stem!r} must not contain path separators")
    return f"{stem}.{kind.extension}"
