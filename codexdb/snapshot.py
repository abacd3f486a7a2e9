"""Snapshot storage: the whole map is signed, compressed, encrypted and rewritten."""

from __future__ import annotations

import base64
import binascii
import contextlib
import json
import os

from .atomic import read_file, write_file
from .compression import Algorithm, compress, decompress
from .encryption import decrypt, encrypt
from .integrity import sign, verify
from .locking import lock, unlock
from .storage import Options, PersistRequest, Storer


def _encode_map(data: dict[str, bytes] | None) -> bytes:
    if data is None:
        return b"null"
    document = {
        key: base64.b64encode(bytes(value)).decode("ascii")
        for key, value in sorted(data.items())
    }
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def _decode_map(raw: bytes) -> dict[str, bytes]:
    try:
        document = json.loads(bytes(raw).decode("utf-8"))
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal snapshot data: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError("failed to unmarshal snapshot data: not an object")

    result: dict[str, bytes] = {}
    for key, value in document.items():
        if value is None:
            result[key] = b""
            continue
        if not isinstance(value, str):
            raise ValueError(
                f"failed to unmarshal snapshot data: value of {key!r} is not a string"
            )
        cleaned = value.replace("\r", "").replace("\n", "")
        try:
            result[key] = base64.b64decode(cleaned, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"failed to unmarshal snapshot data: {exc}") from exc
    return result


class Snapshot(Storer):
    """Stores the complete map in one file, replaced atomically on every write."""

    def __init__(self, options: Options) -> None:
        self._options = options
        fd = os.open(
            options.path + ".lock",
            os.O_RDWR | os.O_CREAT | getattr(os, "O_BINARY", 0),
            0o600,
        )
        self._lock_file = os.fdopen(fd, "r+b")
        try:
            lock(self._lock_file)
        except BaseException:
            self._lock_file.close()
            self._lock_file = None
            raise

    def load(self) -> dict[str, bytes]:
        """Read, decrypt, decompress and verify the snapshot.

        Raises FileNotFoundError when no snapshot has been written yet.
        """
        file_data = read_file(self._options.path)
        if self._options.encryption_key is not None:
            file_data = decrypt(file_data, self._options.encryption_key)
        if self._options.compression != Algorithm.NONE:
            file_data = decompress(file_data)
        return _decode_map(verify(file_data))

    def persist(self, request: PersistRequest) -> None:
        """Sign, compress, encrypt and atomically write ``request.data``."""
        payload = sign(_encode_map(request.data))
        if self._options.compression != Algorithm.NONE:
            payload = compress(
                payload, self._options.compression, self._options.compression_level
            )
        if self._options.encryption_key is not None:
            payload = encrypt(payload, self._options.encryption_key)
        write_file(self._options.path, payload, 0o600)

    def persist_batch(self, requests: list[PersistRequest]) -> None:
        """Write the last complete map carried by the requests."""
        if not requests:
            return
        final = None
        for request in requests:
            if request.data is not None:
                final = request.data
        if final is None:
            raise ValueError("batch persist requires final data map")
        self.persist(PersistRequest(data=final))

    def close(self) -> None:
        """Release the lock and close the lock file."""
        if self._lock_file is None:
            return
        with contextlib.suppress(OSError):
            unlock(self._lock_file)
        self._lock_file.close()
        self._lock_file = None

    def __enter__(self) -> Snapshot:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()