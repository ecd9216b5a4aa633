# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact classification and archive planning.

Loadable artifacts are dynamically linked libraries (.so, .dylib, .dll).
Static artifacts are static archives plus their headers (.a, .h). When the
manifest is split by artifact type, each platform ships up to two archives:

  - loadable: the loadable files, plus any file that is neither kind
  - static:   the static files, plus unclassified files only when there is
              no loadable archive to carry them

A platform with no classified file at all still gets uploaded as one
loadable-typed archive, but it is not listed in the manifest.
"""

import os
from collections.abc import Sequence

from spm_release.models import ArchivePlan, ArtifactType, PlatformTarget

LOADABLE_SUFFIXES: tuple[str, ...] = (".so", ".dylib", ".dll")
STATIC_SUFFIXES: tuple[str, ...] = (".a", ".h")


def classify_artifact(path: str) -> ArtifactType | None:
    """
    Classify a file by suffix. Versioned shared objects (libfoo.so.1.2)
    count as loadable. Returns None for anything else.
    """
    name = os.path.basename(path).lower()
    if name.endswith(LOADABLE_SUFFIXES) or ".so." in name:
        return ArtifactType.LOADABLE
    if name.endswith(STATIC_SUFFIXES):
        return ArtifactType.STATIC
    return None


def _split_plans(platform: PlatformTarget, start: int) -> list[ArchivePlan]:
    loadable: list[str] = []
    static: list[str] = []
    other: list[str] = []
    for path in platform.paths:
        kind = classify_artifact(path)
        if kind is ArtifactType.LOADABLE:
            loadable.append(path)
        elif kind is ArtifactType.STATIC:
            static.append(path)
        else:
            other.append(path)

    plans: list[ArchivePlan] = []
    if loadable:
        plans.append(
            ArchivePlan(
                platform=platform,
                paths=tuple(loadable + other),
                artifact_type=ArtifactType.LOADABLE,
                order=start + len(plans),
            )
        )
    if static:
        extra = other if not loadable else []
        plans.append(
            ArchivePlan(
                platform=platform,
                paths=tuple(static + extra),
                artifact_type=ArtifactType.STATIC,
                order=start + len(plans),
            )
        )
    if not plans:
        plans.append(
            ArchivePlan(
                platform=platform,
                paths=tuple(other),
                artifact_type=ArtifactType.LOADABLE,
                listed=False,
                order=start,
            )
        )
    return plans


def plan_archives(platforms: Sequence[PlatformTarget], split: bool = False) -> list[ArchivePlan]:
    """
    Decide which archives to build, in input order.

    Without `split`, every platform becomes exactly one archive holding all of
    its files.
    """
    plans: list[ArchivePlan] = []
    for platform in platforms:
        if split:
            plans.extend(_split_plans(platform, start=len(plans)))
        else:
            plans.append(ArchivePlan(platform=platform, paths=platform.paths, order=len(plans)))
    return plans
