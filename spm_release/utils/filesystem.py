# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for spm-release.

Atomic writes work by writing to a temporary file in the same directory as
the target, then renaming. Rename on the same filesystem is atomic on POSIX.
If the process crashes mid-write, you get a leftover temp file instead of a
half-written asset.
"""

import tempfile
from pathlib import Path


def atomic_write_bytes(target_path: Path, data: bytes) -> None:
    """
    Write binary data to a file atomically.

    Args:
        target_path: Where the final file should end up.
        data: The raw bytes to write.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # delete=False because the file has to survive closing so we can rename it.
    temp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=".spm_tmp_",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(data)
        temp_fd.flush()
        temp_fd.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def safe_read(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file with proper error context.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
        OSError: For other I/O errors.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    return file_path.read_text(encoding=encoding)
