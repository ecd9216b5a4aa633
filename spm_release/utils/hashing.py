# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for spm-release.

Archives are built in memory, so the common case is hashing bytes. File
hashing exists for verifying assets that were downloaded back to disk.
"""

import base64
import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB


def compute_sha256(file_path: Path) -> str:
    """
    Compute the SHA256 hex digest of a file, reading it in 64 KiB chunks.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def compute_sha256_bytes(data: bytes) -> str:
    """Lowercase hex SHA256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_md5_base64(data: bytes) -> str:
    """
    MD5 of raw bytes, base64 encoded.

    This is the Content-MD5 style encoding package managers expect, not the
    hex form `md5sum` prints.
    """
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
