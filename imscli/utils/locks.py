"""Writer lock for the context store document.

The lock is an advisory ``flock`` on ``<store>.lock``. The kernel drops it
when the holder exits, so a lock file left by a dead process never blocks
anyone. The file also records the holder's pid and command for error
messages. A holder removes the file on release only while the path still
refers to the file it locked; an acquirer whose file was unlinked or
replaced after it opened it starts over.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from imscli.core.errors import StoreLockError
from imscli.utils.state import DEFAULT_LOCK_TIMEOUT

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class StoreLockInfo:
    """Metadata persisted in the lock file."""

    pid: int
    command: str
    created_at: float

    def to_json(self) -> str:
        return json.dumps(
            {
                "pid": self.pid,
                "command": self.command,
                "created_at": self.created_at,
            },
            sort_keys=True,
        )


def read_lock_info(path: Path) -> StoreLockInfo | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None
    try:
        return StoreLockInfo(
            pid=int(payload["pid"]),
            command=str(payload["command"]),
            created_at=float(payload["created_at"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _describe_holder(path: Path) -> str:
    info = read_lock_info(path)
    if info is None:
        return "unknown holder"
    return f"pid={info.pid}, command={info.command}"


def _same_file(fd: int, path: Path) -> bool:
    """Return True if ``path`` still names the file open on ``fd``."""
    try:
        on_disk = os.stat(path)
    except FileNotFoundError:
        return False
    opened = os.fstat(fd)
    return (on_disk.st_dev, on_disk.st_ino) == (opened.st_dev, opened.st_ino)


def _try_lock(lock_path: Path) -> int | None:
    """Open and lock the file at ``lock_path`` without blocking.

    Returns the locked descriptor, or None if another holder has it.
    """
    while True:
        fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            return None
        if _same_file(fd, lock_path):
            return fd
        # Unlinked by its previous holder between our open and flock.
        os.close(fd)


def _release(fd: int, lock_path: Path) -> None:
    try:
        if _same_file(fd, lock_path):
            lock_path.unlink(missing_ok=True)
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


def clear_store_lock(lock_path: Path, force: bool = False) -> None:
    """Remove a store lock file.

    A file nobody holds is removed. Raises StoreLockError if a live process
    holds the lock and force=False.
    """
    if not lock_path.exists():
        return
    fd = _try_lock(lock_path)
    if fd is not None:
        _release(fd, lock_path)
        return
    if not force:
        raise StoreLockError(
            f"Lock is active ({_describe_holder(lock_path)}). "
            "Use --force to remove it anyway."
        )
    logger.warning("Removing store lock %s held by %s", lock_path, _describe_holder(lock_path))
    lock_path.unlink(missing_ok=True)


@contextmanager
def store_write_lock(
    lock_path: Path,
    command: str,
    *,
    timeout: float = DEFAULT_LOCK_TIMEOUT,
) -> Generator[None, None, None]:
    """Hold the exclusive writer lock for a store document.

    Waits up to ``timeout`` seconds for another writer to finish.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout

    fd = _try_lock(lock_path)
    while fd is None:
        if time.monotonic() >= deadline:
            raise StoreLockError(
                f"Timed out after {timeout:g}s waiting for the context store lock "
                f"({_describe_holder(lock_path)})."
            )
        time.sleep(_POLL_INTERVAL)
        fd = _try_lock(lock_path)

    info = StoreLockInfo(pid=os.getpid(), command=command, created_at=time.time())
    try:
        os.ftruncate(fd, 0)
        os.write(fd, info.to_json().encode("utf-8"))
        yield
    finally:
        _release(fd, lock_path)
