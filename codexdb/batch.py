"""Batches of set and delete operations applied to a store in one go."""

from __future__ import annotations

import enum
import json
import threading
from dataclasses import dataclass
from typing import Any


class OpType(enum.IntEnum):
    """Kind of a batched operation."""

    SET = 0
    DELETE = 1


class BatchError(ValueError):
    """A batch is invalid or cannot be serialised."""


@dataclass(frozen=True)
class Operation:
    """A single operation queued in a batch."""

    type: OpType
    key: str
    value: Any = None


@dataclass(frozen=True)
class SerializedOperation:
    """An operation with its value encoded as JSON bytes."""

    type: OpType
    key: str
    value: bytes | None = None


class Batch:
    """A thread-safe, chainable list of operations."""

    def __init__(self) -> None:
        self._operations: list[Operation] = []
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> Batch:
        """Queue a set of ``key`` to ``value``."""
        with self._lock:
            self._operations.append(Operation(OpType.SET, key, value))
        return self

    def delete(self, key: str) -> Batch:
        """Queue a deletion of ``key``."""
        with self._lock:
            self._operations.append(Operation(OpType.DELETE, key))
        return self

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)

    def clear(self) -> None:
        """Drop every queued operation."""
        with self._lock:
            self._operations = []

    def operations(self) -> list[Operation]:
        """Return a copy of the queued operations, in order."""
        with self._lock:
            return list(self._operations)

    def serialize(self) -> list[SerializedOperation]:
        """Encode every operation, with set values as compact JSON."""
        with self._lock:
            result = []
            for op in self._operations:
                value = None
                if op.type == OpType.SET and op.value is not None:
                    try:
                        value = json.dumps(
                            op.value,
                            separators=(",", ":"),
                            sort_keys=True,
                            ensure_ascii=False,
                            allow_nan=False,
                        ).encode("utf-8")
                    except (TypeError, ValueError) as exc:
                        raise BatchError(
                            f"failed to marshal value for key {op.key}: {exc}"
                        ) from exc
                result.append(SerializedOperation(op.type, op.key, value))
            return result

    def validate(self) -> None:
        """Raise :class:`BatchError` if the batch is empty or has an empty key."""
        with self._lock:
            if not self._operations:
                raise BatchError("batch is empty")
            if any(op.key == "" for op in self._operations):
                raise BatchError("operation has empty key")

    def optimize_operations(self) -> Batch:
        """Keep only the last operation for each key, preserving order."""
        with self._lock:
            last = {op.key: index for index, op in enumerate(self._operations)}
            self._operations = [
                op for index, op in enumerate(self._operations) if last[op.key] == index
            ]
        return self