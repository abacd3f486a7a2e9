"""Exclusive, non-blocking OS-level advisory file locks."""

from __future__ import annotations

import errno
import os
from typing import IO, Union

if os.name == "nt":
    import msvcrt
else:
    import fcntl

FileLike = Union[int, IO]

_WHOLE_FILE = 0x7FFFFFFF
_LOCKED_ERRNOS = {
    errno.EACCES,
    errno.EAGAIN,
    getattr(errno, "EWOULDBLOCK", errno.EAGAIN),
    getattr(errno, "EDEADLK", errno.EACCES),
    getattr(errno, "EDEADLOCK", errno.EACCES),
}


class FileLockedError(OSError):
    """The file is already locked by another holder."""

    def __init__(self, message: str = "file is locked by another process") -> None:
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


def _fileno(file: FileLike) -> int:
    return file if isinstance(file, int) else file.fileno()


def lock(file: FileLike) -> None:
    """Take an exclusive lock on ``file`` or raise :class:`FileLockedError` at once."""
    fd = _fileno(file)
    try:
        if os.name == "nt":
            position = os.lseek(fd, 0, os.SEEK_CUR)
            os.lseek(fd, 0, os.SEEK_SET)
            try:
                msvcrt.locking(fd, msvcrt.LK_NBLCK, _WHOLE_FILE)
            finally:
                os.lseek(fd, position, os.SEEK_SET)
        else:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as exc:
        if isinstance(exc, BlockingIOError) or exc.errno in _LOCKED_ERRNOS:
            raise FileLockedError() from exc
        raise OSError(exc.errno, f"failed to acquire file lock: {exc.strerror}") from exc


def unlock(file: FileLike) -> None:
    """Release a lock taken with :func:`lock`."""
    fd = _fileno(file)
    try:
        if os.name == "nt":
            position = os.lseek(fd, 0, os.SEEK_CUR)
            os.lseek(fd, 0, os.SEEK_SET)
            try:
                msvcrt.locking(fd, msvcrt.LK_UNLCK, _WHOLE_FILE)
            finally:
                os.lseek(fd, position, os.SEEK_SET)
        else:
            fcntl.flock(fd, fcntl.LOCK_UN)
    except OSError as exc:
        raise OSError(exc.errno, f"failed to release file lock: {exc.strerror}") from exc