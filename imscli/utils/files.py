"""Filesystem helpers for atomic writes."""

from __future__ import annotations

import os
import platform
from pathlib import Path


def atomic_write_text(path: Path, data: str, *, mode: int | None = None) -> None:
    """Atomically write text data to a file with fsync.

    When ``mode`` is given the temporary file is created with those
    permissions, so the final file never exists with looser ones.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")

    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
    fd = os.open(tmp_path, flags, mode if mode is not None else 0o666)
    try:
        with open(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            _chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    _fsync_directory(path.parent)


def _chmod(path: Path, mode: int) -> None:
    if platform.system() == "Windows":
        return
    os.chmod(path, mode)


def _fsync_directory(path: Path) -> None:
    """Best-effort fsync on a directory after atomic replace."""
    try:
        fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
