# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Glob expansion for platform path patterns.

The parser only depends on the GlobResolver protocol. The filesystem
implementation below is what a real run uses; tests can hand in anything
with an `expand` method.
"""

import glob
import os
from pathlib import Path
from typing import Protocol


class GlobResolver(Protocol):
    def expand(self, pattern: str) -> list[str]:
        """Return the concrete, existing file paths matching `pattern`."""
        ...


class FilesystemGlobResolver:
    """
    Expands patterns against the local filesystem.

    `**` matches across directories. Only regular files are returned, sorted
    so the same tree always yields the same order. Relative patterns are
    resolved against `base_dir` when one is given.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir

    def expand(self, pattern: str) -> list[str]:
        expanded = os.path.expanduser(pattern.strip())
        if self._base_dir is not None and not os.path.isabs(expanded):
            expanded = str(self._base_dir / expanded)
        matches = glob.glob(expanded, recursive=True)
        return sorted(path for path in matches if os.path.isfile(path))
