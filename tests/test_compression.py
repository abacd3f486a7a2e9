import os

import pytest

from codexdb.compression import (
    Algorithm,
    CompressionError,
    compress,
    compression_ratio,
    decompress,
    space_savings,
)

ALL = [Algorithm.NONE, Algorithm.GZIP, Algorithm.ZSTD, Algorithm.SNAPPY]
COMPRESSING = [Algorithm.GZIP, Algorithm.ZSTD, Algorithm.SNAPPY]


def test_gzip_round_trip():
    original = (
        b"Hello, World! This is a test of gzip compression. "
        + b"Compression works best with repetitive data. " * 3
    )
    compressed = compress(original, Algorithm.GZIP, -1)
    assert compressed[0] == Algorithm.GZIP
    assert decompress(compressed) == original


def test_zstd_round_trip():
    original = b"This is test data for zstd compression! " * 100
    compressed = compress(original, Algorithm.ZSTD, 3)
    assert compressed[:2] == bytes([Algorithm.ZSTD, 3])
    assert len(compressed) < len(original)
    assert decompress(compressed) == original


def test_snappy_round_trip():
    original = b"Snappy is designed for speed! " * 50
    compressed = compress(original, Algorithm.SNAPPY, 0)
    assert compressed[0] == Algorithm.SNAPPY
    assert len(compressed) < len(original)
    assert decompress(compressed) == original


def test_none_adds_header_only():
    original = b"No compression test"
    compressed = compress(original, Algorithm.NONE, 0)
    assert len(compressed) == len(original) + 2
    assert compressed[:2] == b"\x00\x00"
    assert decompress(compressed) == original


@pytest.mark.parametrize("algo", ALL)
def test_empty_data(algo):
    compressed = compress(b"", algo, 0)
    assert compressed == b""
    assert decompress(compressed) == b""


@pytest.mark.parametrize("algo", COMPRESSING)
def test_large_data(algo):
    original = bytes(i % 256 for i in range(1024 * 1024))
    compressed = compress(original, algo, 6)
    assert compression_ratio(len(original), len(compressed)) > 1.5
    assert decompress(compressed) == original


@pytest.mark.parametrize("algo", COMPRESSING)
def test_random_data(algo):
    original = os.urandom(10 * 1024)
    compressed = compress(original, algo, 6)
    assert decompress(compressed) == original


@pytest.mark.parametrize("level", [1, -1, 9])
def test_gzip_levels(level):
    original = b"Compression level test data! " * 1000
    compressed = compress(original, Algorithm.GZIP, level)
    assert compressed[1] == level & 0xFF
    assert decompress(compressed) == original


def test_out_of_range_levels_fall_back_to_defaults():
    data = b"level fallback " * 20
    assert compress(data, Algorithm.GZIP, 20)[1] == 0xFF
    assert compress(data, Algorithm.ZSTD, 0)[1] == 3
    assert compress(data, Algorithm.ZSTD, 12)[1] == 3


@pytest.mark.parametrize(
    "data",
    [
        bytes([Algorithm.GZIP, 6, 0xFF, 0xFF, 0xFF]),
        bytes([Algorithm.ZSTD, 3, 0xFF, 0xFF, 0xFF]),
        bytes([Algorithm.SNAPPY, 0, 0xFF, 0xFF, 0xFF]),
    ],
    ids=["corrupted_gzip", "corrupted_zstd", "corrupted_snappy"],
)
def test_decompress_invalid_data(data):
    with pytest.raises(CompressionError):
        decompress(data)


def test_decompress_unknown_algorithm():
    with pytest.raises(CompressionError, match="unsupported"):
        decompress(bytes([99, 0, 1, 2]))


def test_compress_unknown_algorithm():
    with pytest.raises(CompressionError, match="unsupported"):
        compress(b"data", 99, 0)


def test_decompress_short_input_unchanged():
    assert decompress(b"x") == b"x"
    assert decompress(b"") == b""


def test_snappy_decodes_known_literal():
    assert decompress(b"\x03\x00" + b"\x05\x10hello") == b"hello"


def test_snappy_decodes_overlapping_copy():
    assert decompress(b"\x03\x00" + b"\x08\x04ab\x09\x02") == b"abababab"


def test_snappy_rejects_wrong_length():
    with pytest.raises(CompressionError):
        decompress(b"\x03\x00" + b"\x06\x10hello")


@pytest.mark.parametrize(
    "algo, name",
    [
        (Algorithm.NONE, "none"),
        (Algorithm.GZIP, "gzip"),
        (Algorithm.ZSTD, "zstd"),
        (Algorithm.SNAPPY, "snappy"),
    ],
)
def test_algorithm_string(algo, name):
    assert str(algo) == name


def test_compression_metrics():
    assert compression_ratio(1000, 250) == 4.0
    assert space_savings(1000, 250) == 75.0
    assert compression_ratio(100, 0) == 0
    assert space_savings(0, 100) == 0


@pytest.mark.parametrize("algo", ALL)
def test_all_algorithms_round_trip(algo):
    data = b"Test data for all algorithms! " * 100
    compressed = compress(data, algo, 6)
    assert compressed[0] == algo
    assert decompress(compressed) == data