# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment-derived values for a run.

The release tag and repository come from the CI environment, not from the
config file: GITHUB_REF (refs/tags/<tag>, falling back to GITHUB_REF_NAME)
and GITHUB_REPOSITORY (owner/name). CLI flags can override both.
"""

import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import NamedTuple

from spm_release.exceptions import ConfigurationError

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11

TAG_REF_PREFIX = "refs/tags/"


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str


@dataclass(frozen=True)
class ReleaseEnvironment:
    owner: str
    repo: str
    tag: str

    @property
    def version(self) -> str:
        return self.tag

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"


def check_minimum_python() -> None:
    """
    Verify we're running Python 3.11+.

    Raises:
        RuntimeError: If Python version is below 3.11.
    """
    major, minor = sys.version_info[:2]
    if major < MINIMUM_PYTHON_MAJOR or (
        major == MINIMUM_PYTHON_MAJOR and minor < MINIMUM_PYTHON_MINOR
    ):
        raise RuntimeError(
            f"spm-release requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def get_system_info() -> SystemInfo:
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
    )


def tag_from_ref(ref: str) -> str:
    """Strip the refs/tags/ prefix. Other refs are returned unchanged."""
    if ref.startswith(TAG_REF_PREFIX):
        return ref[len(TAG_REF_PREFIX):]
    return ref


def split_repository(repository: str) -> tuple[str, str]:
    owner, sep, repo = repository.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ConfigurationError(
            f"Repository must be of the form 'owner/name', got {repository!r}"
        )
    return owner, repo


def resolve_release_environment(
    environ: Mapping[str, str] | None = None,
    repository: str | None = None,
    tag: str | None = None,
) -> ReleaseEnvironment:
    """
    Work out owner, repo and tag for this run.

    Raises:
        ConfigurationError: If the repository or tag cannot be determined.
    """
    env = os.environ if environ is None else environ

    repository = repository or env.get("GITHUB_REPOSITORY", "")
    if not repository:
        raise ConfigurationError("Repository is unknown: set GITHUB_REPOSITORY or pass --repository")
    owner, repo = split_repository(repository)

    if tag is None:
        ref = env.get("GITHUB_REF", "")
        tag = tag_from_ref(ref) if ref else env.get("GITHUB_REF_NAME", "")
    tag = tag_from_ref(tag.strip())
    if not tag:
        raise ConfigurationError("Release tag is unknown: set GITHUB_REF or pass --tag")

    return ReleaseEnvironment(owner=owner, repo=repo, tag=tag)
