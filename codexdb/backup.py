"""Rotating backups: ``<path>.bak.1`` is the newest, ``<path>.bak.N`` the oldest."""

from __future__ import annotations

import os
import threading

_lock = threading.Lock()


def _backup_path(path: str, index: int) -> str:
    return f"{path}.bak.{index}"


def create(path: str | os.PathLike, num_backups: int) -> None:
    """Rotate existing backups and copy the current file to ``<path>.bak.1``."""
    if num_backups <= 0:
        return
    path = os.fspath(path)

    with _lock:
        for index in range(num_backups - 1, 0, -1):
            old_path = _backup_path(path, index)
            if os.path.exists(old_path):
                os.replace(old_path, _backup_path(path, index + 1))

        if os.path.exists(path):
            with open(path, "rb") as source:
                data = source.read()
            fd = os.open(_backup_path(path, 1), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as target:
                target.write(data)

        try:
            os.remove(_backup_path(path, num_backups + 1))
        except FileNotFoundError:
            pass