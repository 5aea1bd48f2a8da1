"""Lock file shared by every herald process using the same database.

`herald run` and `herald check` are separate processes, so the in-process
scheduler slot cannot keep them apart. Each cycle takes a non-blocking
``flock`` on ``<db_path>.lock``; the kernel drops it if the process dies.
"""

from __future__ import annotations

import errno
import fcntl
import logging
import os
from typing import Optional, TextIO

LOGGER = logging.getLogger(__name__)


class FileCycleLock:
    """Exclusive, non-blocking process lock around one poll cycle."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._handle: Optional[TextIO] = None

    @property
    def path(self) -> str:
        return self._path

    def acquire(self) -> bool:
        """Take the lock; return False when another holder has it."""

        if self._handle is not None:
            return False
        handle = open(self._path, "a+", encoding="utf-8")
        try:
            fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            handle.close()
            if exc.errno in (errno.EAGAIN, errno.EACCES):
                LOGGER.info("Cycle lock %s is held by another process", self._path)
                return False
            raise
        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        return True

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle, fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None
