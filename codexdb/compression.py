"""Compression with a two-byte header naming the algorithm and level used."""

from __future__ import annotations

import enum
import gzip
import zlib

import zstandard


class Algorithm(enum.IntEnum):
    """Compression algorithm identifier, stored as the first header byte."""

    NONE = 0
    GZIP = 1
    ZSTD = 2
    SNAPPY = 3

    def __str__(self) -> str:
        return self.name.lower()


class CompressionError(ValueError):
    """Data could not be compressed or decompressed."""


_GZIP_DEFAULT = -1
_GZIP_BEST = 9
_ZSTD_DEFAULT = 3


def compress(data: bytes, algo: Algorithm, level: int = -1) -> bytes:
    """Compress ``data`` and prefix it with ``[algorithm][level]``.

    Empty input is returned unchanged. The level applies to gzip and zstd only.
    """
    data = bytes(data)
    if not data:
        return data

    try:
        algo = Algorithm(algo)
    except ValueError:
        raise CompressionError(f"unsupported compression algorithm: {algo}") from None

    if algo == Algorithm.NONE:
        return bytes([Algorithm.NONE, 0]) + data

    if algo == Algorithm.GZIP:
        if level < _GZIP_DEFAULT or level > _GZIP_BEST:
            level = _GZIP_DEFAULT
        try:
            body = gzip.compress(data, compresslevel=level, mtime=0)
        except (OSError, zlib.error, ValueError) as exc:
            raise CompressionError(f"failed to compress with gzip: {exc}") from exc
    elif algo == Algorithm.ZSTD:
        if level < 1 or level > 9:
            level = _ZSTD_DEFAULT
        try:
            body = zstandard.ZstdCompressor(level=level).compress(data)
        except zstandard.ZstdError as exc:
            raise CompressionError(f"failed to compress with zstd: {exc}") from exc
    else:
        body = _snappy_encode(data)

    return bytes([algo, level & 0xFF]) + body


def decompress(data: bytes) -> bytes:
    """Undo :func:`compress`, choosing the algorithm from the header."""
    data = bytes(data)
    if len(data) < 2:
        return data

    algo_byte, body = data[0], data[2:]
    try:
        algo = Algorithm(algo_byte)
    except ValueError:
        raise CompressionError(
            f"unsupported compression algorithm in header: {algo_byte}"
        ) from None

    if algo == Algorithm.NONE:
        return body
    if algo == Algorithm.GZIP:
        try:
            return gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as exc:
            raise CompressionError(f"failed to decompress with gzip: {exc}") from exc
    if algo == Algorithm.ZSTD:
        try:
            return zstandard.ZstdDecompressor().decompress(body)
        except zstandard.ZstdError as exc:
            raise CompressionError(f"failed to decompress with zstd: {exc}") from exc
    return _snappy_decode(body)


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Return original/compressed size, or 0 when the compressed size is 0."""
    if compressed_size == 0:
        return 0.0
    return original_size / compressed_size


def space_savings(original_size: int, compressed_size: int) -> float:
    """Return the percentage of space saved, or 0 when the original size is 0."""
    if original_size == 0:
        return 0.0
    return (1.0 - compressed_size / original_size) * 100.0


# --- Snappy block format -------------------------------------------------

_MAX_OFFSET = 0xFFFF


def _put_varint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _emit_literal(out: bytearray, literal: bytes) -> None:
    if not literal:
        return
    n = len(literal) - 1
    if n < 60:
        out.append(n << 2)
    else:
        size = (n.bit_length() + 7) // 8
        out.append((59 + size) << 2)
        out += n.to_bytes(size, "little")
    out += literal


def _emit_copy(out: bytearray, offset: int, length: int) -> None:
    while length >= 68:
        out.append(2 | (63 << 2))
        out += offset.to_bytes(2, "little")
        length -= 64
    if length > 64:
        out.append(2 | (59 << 2))
        out += offset.to_bytes(2, "little")
        length -= 60
    if 4 <= length < 12 and offset < 2048:
        out.append(1 | ((length - 4) << 2) | ((offset >> 8) << 5))
        out.append(offset & 0xFF)
    else:
        out.append(2 | ((length - 1) << 2))
        out += offset.to_bytes(2, "little")


def _snappy_encode(data: bytes) -> bytes:
    out = bytearray(_put_varint(len(data)))
    n = len(data)
    table: dict[bytes, int] = {}
    pos = literal_start = 0
    while pos + 4 <= n:
        key = data[pos:pos + 4]
        candidate = table.get(key)
        table[key] = pos
        if candidate is None or pos - candidate > _MAX_OFFSET:
            pos += 1
            continue
        length = 4
        while pos + length < n and data[candidate + length] == data[pos + length]:
            length += 1
        _emit_literal(out, data[literal_start:pos])
        _emit_copy(out, pos - candidate, length)
        pos += length
        literal_start = pos
    _emit_literal(out, data[literal_start:])
    return bytes(out)


def _corrupt() -> CompressionError:
    return CompressionError("failed to decompress with snappy: corrupt input")


def _snappy_decode(data: bytes) -> bytes:
    expected = 0
    shift = 0
    pos = 0
    while True:
        if pos >= len(data) or shift > 28:
            raise _corrupt()
        byte = data[pos]
        pos += 1
        expected |= (byte & 0x7F) << shift
        shift += 7
        if byte < 0x80:
            break
    if expected > 0xFFFFFFFF:
        raise _corrupt()

    out = bytearray()
    end = len(data)
    while pos < end:
        tag = data[pos]
        pos += 1
        kind = tag & 3
        if kind == 0:
            length = tag >> 2
            if length >= 60:
                size = length - 59
                if pos + size > end:
                    raise _corrupt()
                length = int.from_bytes(data[pos:pos + size], "little")
                pos += size
            length += 1
            if pos + length > end:
                raise _corrupt()
            out += data[pos:pos + length]
            pos += length
        else:
            if kind == 1:
                if pos + 1 > end:
                    raise _corrupt()
                length = 4 + ((tag >> 2) & 7)
                offset = ((tag >> 5) << 8) | data[pos]
                pos += 1
            else:
                size = 2 if kind == 2 else 4
                if pos + size > end:
                    raise _corrupt()
                length = 1 + (tag >> 2)
                offset = int.from_bytes(data[pos:pos + size], "little")
                pos += size
            if offset == 0 or offset > len(out):
                raise _corrupt()
            start = len(out) - offset
            if offset >= length:
                out += out[start:start + length]
            else:
                for index in range(length):
                    out.append(out[start + index])
        if len(out) > expected:
            raise _corrupt()
    if len(out) != expected:
        raise _corrupt()
    return bytes(out)