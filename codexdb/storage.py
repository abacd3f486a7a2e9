"""Persistence interface and the types its implementations share."""

from __future__ import annotations

import abc
import enum
import os
from dataclasses import dataclass

from .compression import Algorithm
from .locking import FileLockedError

__all__ = [
    "FileLockedError",
    "Options",
    "PersistOp",
    "PersistRequest",
    "Storer",
]


class PersistOp(enum.IntEnum):
    """Kind of operation recorded by a storer."""

    SET = 0
    DELETE = 1
    CLEAR = 2


@dataclass
class PersistRequest:
    """One persistence operation.

    Ledger storage uses ``op``, ``key`` and ``value``; snapshot storage uses
    ``data``, the complete key-value map.
    """

    op: PersistOp = PersistOp.SET
    key: str = ""
    value: bytes | None = None
    data: dict[str, bytes] | None = None


@dataclass
class Options:
    """Configuration of a storage strategy."""

    path: str
    encryption_key: bytes | None = None
    compression: Algorithm = Algorithm.NONE
    compression_level: int = 0

    def __post_init__(self) -> None:
        self.path = os.fspath(self.path)
        if self.encryption_key is not None:
            self.encryption_key = bytes(self.encryption_key)
        self.compression = Algorithm(self.compression)


class Storer(abc.ABC):
    """A persistence strategy for a map of keys to raw JSON values."""

    @abc.abstractmethod
    def load(self) -> dict[str, bytes]:
        """Read the stored map from disk."""

    @abc.abstractmethod
    def persist(self, request: PersistRequest) -> None:
        """Durably record one operation."""

    @abc.abstractmethod
    def persist_batch(self, requests: list[PersistRequest]) -> None:
        """Durably record several operations."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the resources held by the storer."""