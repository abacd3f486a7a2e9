"""Append-only ledger storage with per-entry checksums and crash recovery.

Each entry is framed as ``[4-byte big-endian length][32-byte SHA-256][payload]``
where the length covers checksum and payload. The checksum is taken over the
(possibly compressed) entry before encryption.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import re
import struct
from typing import Any

from .compression import Algorithm, compress, decompress
from .encryption import decrypt, encrypt
from .locking import lock, unlock
from .storage import Options, PersistOp, PersistRequest, Storer

_LENGTH = struct.Struct(">I")
_CHECKSUM_SIZE = 32
_WS_RE = re.compile(r"[ \t\n\r]*")
_WHITESPACE = " \t\n\r"


class _CorruptEntry(ValueError):
    """An entry in the ledger cannot be read."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _compact(raw: bytes) -> str:
    """Validate JSON and strip its insignificant whitespace."""
    text = bytes(raw).decode("utf-8")
    _loads(text)
    out: list[str] = []
    in_string = escaped = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch not in _WHITESPACE:
            out.append(ch)
            if ch == '"':
                in_string = True
    return "".join(out)


def _encode_entry(request: PersistRequest) -> bytes:
    parts = [f'"op":{int(request.op)}']
    if request.key:
        parts.append('"key":' + json.dumps(request.key, ensure_ascii=False))
    if request.value:
        try:
            parts.append('"value":' + _compact(request.value))
        except ValueError as exc:
            raise ValueError(f"failed to marshal ledger entry: {exc}") from exc
    return ("{" + ",".join(parts) + "}").encode("utf-8")


def _raw_fields(text: str) -> dict[str, str]:
    """Map case-folded keys of a valid JSON object to their raw value text."""
    fields: dict[str, str] = {}
    pos = _WS_RE.match(text, _WS_RE.match(text).end() + 1).end()
    if text[pos] == "}":
        return fields
    while True:
        key, pos = _DECODER.raw_decode(text, pos)
        pos = _WS_RE.match(text, pos).end() + 1
        pos = _WS_RE.match(text, pos).end()
        _, end = _DECODER.raw_decode(text, pos)
        fields[key.casefold()] = text[pos:end]
        pos = _WS_RE.match(text, end).end()
        if text[pos] == "}":
            return fields
        pos = _WS_RE.match(text, pos + 1).end()


def _decode_entry(entry_bytes: bytes) -> tuple[int, str, bytes]:
    text = entry_bytes.decode("utf-8")
    document = _loads(text)
    if document is None:
        return int(PersistOp.SET), "", b""
    if not isinstance(document, dict):
        raise _CorruptEntry("ledger entry is not an object")
    fields = _raw_fields(text)

    op = 0
    if "op" in fields:
        raw_op = _loads(fields["op"])
        if raw_op is not None:
            if not isinstance(raw_op, int) or isinstance(raw_op, bool):
                raise _CorruptEntry("ledger entry has an invalid op")
            op = raw_op

    key = ""
    if "key" in fields:
        raw_key = _loads(fields["key"])
        if raw_key is not None:
            if not isinstance(raw_key, str):
                raise _CorruptEntry("ledger entry has an invalid key")
            key = raw_key

    value = fields.get("value", "").encode("utf-8")
    return op, key, value


class Ledger(Storer):
    """Append-only log of operations, replayed on load."""

    def __init__(self, options: Options) -> None:
        self._options = options
        fd = os.open(
            options.path,
            os.O_RDWR | os.O_CREAT | getattr(os, "O_BINARY", 0),
            0o600,
        )
        self._file = os.fdopen(fd, "r+b")
        try:
            lock(self._file)
        except BaseException:
            self._file.close()
            self._file = None
            raise

    def _read_entry(self, content: bytes, pos: int) -> tuple[bytes, int]:
        header_end = pos + _LENGTH.size
        if header_end > len(content):
            raise _CorruptEntry("truncated entry length")
        (length,) = _LENGTH.unpack_from(content, pos)
        if length < _CHECKSUM_SIZE:
            raise _CorruptEntry("invalid entry: length too short for checksum")
        end = header_end + length
        if end > len(content):
            raise _CorruptEntry("truncated entry")
        expected = content[header_end:header_end + _CHECKSUM_SIZE]
        payload = content[header_end + _CHECKSUM_SIZE:end]

        if self._options.encryption_key is not None:
            payload = decrypt(payload, self._options.encryption_key)
        if hashlib.sha256(payload).digest() != expected:
            raise _CorruptEntry("checksum verification failed: data corrupted")
        if self._options.compression != Algorithm.NONE:
            payload = decompress(payload)
        return payload, end

    def load(self) -> dict[str, bytes]:
        """Replay the ledger; a corrupt tail is cut off after the last good entry."""
        self._file.seek(0)
        content = self._file.read()
        data: dict[str, bytes] = {}
        pos = last_valid = 0
        count = 0

        while pos < len(content):
            try:
                entry_bytes, end = self._read_entry(content, pos)
                op, key, value = _decode_entry(entry_bytes)
            except ValueError:
                if count > 0:
                    self._file.truncate(last_valid)
                break

            if op == PersistOp.SET:
                data[key] = value
            elif op == PersistOp.DELETE:
                data.pop(key, None)
            elif op == PersistOp.CLEAR:
                data = {}

            pos = last_valid = end
            count += 1

        self._file.seek(0, os.SEEK_END)
        return data

    def persist(self, request: PersistRequest) -> None:
        """Append one operation and flush it to disk."""
        entry = _encode_entry(request)
        if self._options.compression != Algorithm.NONE:
            entry = compress(
                entry, self._options.compression, self._options.compression_level
            )
        checksum = hashlib.sha256(entry).digest()
        payload = entry
        if self._options.encryption_key is not None:
            payload = encrypt(entry, self._options.encryption_key)

        frame = _LENGTH.pack(len(payload) + _CHECKSUM_SIZE) + checksum + payload
        self._file.seek(0, os.SEEK_END)
        self._file.write(frame)
        self._file.flush()
        os.fsync(self._file.fileno())

    def persist_batch(self, requests: list[PersistRequest]) -> None:
        """Append several operations in order."""
        for request in requests:
            self.persist(request)

    def close(self) -> None:
        """Release the lock and close the ledger file."""
        if self._file is None:
            return
        with contextlib.suppress(OSError):
            unlock(self._file)
        self._file.close()
        self._file = None

    def __enter__(self) -> Ledger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()