"""Database file path generation under the user's home directory."""

from __future__ import annotations

import os
import secrets
from datetime import datetime
from pathlib import Path

_DEFAULT_NAME = "codex"


def codex_dir() -> str:
    """Return the path of the ``codex`` directory in the user's home."""
    return os.path.join(str(Path.home()), "codex")


def _find_existing_database(directory: str, name: str) -> str | None:
    prefix = name + "_"
    with os.scandir(directory) as entries:
        names = sorted(
            entry.name
            for entry in entries
            if not entry.is_dir(follow_symlinks=False)
        )
    for filename in names:
        if filename.startswith(prefix) and filename.endswith(".db"):
            return os.path.join(directory, filename)
    return None


def generate_db_path(name: str = "") -> str:
    """Return ``~/codex/<name>_<timestamp>_<random>.db``, reusing an existing one.

    An empty name means ``codex``. The directory is created if needed.
    """
    name = name or _DEFAULT_NAME
    directory = codex_dir()
    os.makedirs(directory, mode=0o755, exist_ok=True)

    try:
        existing = _find_existing_database(directory, name)
    except OSError:
        existing = None
    if existing:
        return existing

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_hash = secrets.token_hex(8)
    return os.path.join(directory, f"{name}_{timestamp}_{random_hash}.db")