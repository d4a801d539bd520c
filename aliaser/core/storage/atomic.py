"""
Atomic File Replacement
=======================

Write-to-temp, fsync, rename-over-target. The target path always
holds either the previous complete file or the new complete file.

Writes are split into stage() and commit() so that a caller can
prepare several files and then rename them in a chosen order.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger("aliaser.storage")


def stage(path: Path, data: bytes) -> Path:
    """
    Write ``data`` to a temp file next to ``path`` and fsync it.

    The temp file is created owner-only (0600) in the same directory,
    so the later rename stays on one filesystem.

    Returns:
        Path of the staged temp file

    Raises:
        OSError: If the temp file cannot be written
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except BaseException:
        discard(tmp_path)
        raise
    return tmp_path


def commit(tmp_path: Path, path: Path) -> None:
    """
    Rename a staged temp file over ``path`` and make the rename durable.

    Raises:
        OSError: Only if the rename fails. Once the rename has happened
            the new file is in place, so a failed directory fsync is
            logged and not raised.
    """
    os.replace(tmp_path, path)
    try:
        _fsync_directory(path.parent)
    except OSError as exc:
        logger.warning("Replaced %s but could not fsync its directory: %s", path, exc)


def discard(tmp_path: Path) -> None:
    """Remove a staged temp file that will not be committed."""
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass


def write_atomic(path: Path, data: bytes) -> None:
    """
    Atomically replace ``path`` with ``data``.

    Raises:
        OSError: On any write or rename failure; the target is untouched
            and the temp file is removed
    """
    tmp_path = stage(path, data)
    try:
        commit(tmp_path, path)
    except BaseException:
        discard(tmp_path)
        raise


def _fsync_directory(directory: Path) -> None:
    # Directory fsync persists the rename itself; not supported on Windows
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
