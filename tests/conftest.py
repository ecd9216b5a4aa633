# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for spm-release tests.

Fixtures here are available to every test file automatically.
We keep them minimal: just the stuff that multiple test modules need.
"""

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from spm_release.config.schema import ReleaseConfig
from spm_release.runtime.environment import ReleaseEnvironment


@pytest.fixture()
def build_dir(tmp_path: Path) -> Path:
    """
    A fake build output tree:

        out/linux/libfoo.so, libfoo.a, foo.h
        out/macos/libfoo.dylib
        out/windows/foo.dll
    """
    root = tmp_path / "out"
    (root / "linux").mkdir(parents=True)
    (root / "macos").mkdir()
    (root / "windows").mkdir()
    (root / "linux" / "libfoo.so").write_bytes(b"\x7fELF shared object")
    (root / "linux" / "libfoo.a").write_bytes(b"!<arch>\nstatic archive")
    (root / "linux" / "foo.h").write_text("int foo(void);\n", encoding="utf-8")
    (root / "macos" / "libfoo.dylib").write_bytes(b"\xcf\xfa\xed\xfe mach-o")
    (root / "windows" / "foo.dll").write_bytes(b"MZ portable executable")
    return root


@pytest.fixture()
def release_env() -> ReleaseEnvironment:
    return ReleaseEnvironment(owner="acme", repo="sqlite-foo", tag="v1.2.3")


@pytest.fixture()
def make_config() -> Callable[..., ReleaseConfig]:
    """Factory for ReleaseConfig with sensible test defaults."""

    def _make(**overrides: Any) -> ReleaseConfig:
        values: dict[str, Any] = {
            "project_name": "sqlite-foo",
            "github_token": "ghp_test_token",
            "platforms": {},
        }
        values.update(overrides)
        return ReleaseConfig.model_validate(values)

    return _make


@pytest.fixture()
def tmp_config_file(tmp_path: Path, build_dir: Path) -> Path:
    """A valid YAML release config whose platforms point at `build_dir`."""
    config_content = textwrap.dedent(f"""\
        project_name: sqlite-foo
        github_token: ghp_test_token
        log_level: DEBUG
        platforms:
          linux-x86_64: "{build_dir}/linux/*.so"
          windows-x86_64: "{build_dir}/windows/*.dll"
    """)
    config_file = tmp_path / "release.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file
