"""Crash-safe file writes using the write-to-temporary-then-rename pattern."""

from __future__ import annotations

import contextlib
import os
import tempfile


def write_file(filename: str | os.PathLike, data: bytes, perm: int = 0o644) -> None:
    """Write ``data`` to ``filename`` so it is either fully replaced or unchanged."""
    filename = os.fspath(filename)
    directory = os.path.dirname(filename) or "."
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, perm)
        os.replace(tmp_name, filename)
    except BaseException:
        with contextlib.suppress(OSError):
            os.remove(tmp_name)
        raise
    _sync_dir(directory)


def _sync_dir(directory: str) -> None:
    """Flush a directory entry so that a rename in it is durable."""
    if os.name == "nt":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def read_file(filename: str | os.PathLike) -> bytes:
    """Return the whole content of ``filename``."""
    with open(filename, "rb") as handle:
        return handle.read()


def exists(filename: str | os.PathLike) -> bool:
    """Tell whether ``filename`` exists."""
    return os.path.exists(filename)


def file_size(filename: str | os.PathLike) -> int:
    """Return the size of ``filename`` in bytes."""
    return os.stat(filename).st_size