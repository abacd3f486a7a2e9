import os
import stat
import threading

import pytest

from codexdb import atomic


def test_write_file(tmp_path):
    filename = tmp_path / "test.txt"
    data = b"test data"
    atomic.write_file(filename, data, 0o644)
    assert filename.read_bytes() == data
    assert stat.S_IMODE(os.stat(filename).st_mode) == 0o644


def test_write_file_leaves_no_temporary_files(tmp_path):
    atomic.write_file(tmp_path / "only.txt", b"x", 0o644)
    assert os.listdir(tmp_path) == ["only.txt"]


def test_write_file_overwrite(tmp_path):
    filename = tmp_path / "overwrite.txt"
    atomic.write_file(filename, b"initial", 0o644)
    atomic.write_file(filename, b"overwritten", 0o644)
    assert filename.read_bytes() == b"overwritten"


def test_write_file_large_data(tmp_path):
    filename = tmp_path / "large.txt"
    data = bytes(i % 256 for i in range(1024 * 1024))
    atomic.write_file(filename, data, 0o644)
    assert atomic.file_size(filename) == len(data)


def test_read_file(tmp_path):
    filename = tmp_path / "read.txt"
    data = b"read test data"
    atomic.write_file(filename, data, 0o644)
    assert atomic.read_file(filename) == data


def test_exists(tmp_path):
    filename = tmp_path / "exists.txt"
    assert atomic.exists(filename) is False
    atomic.write_file(filename, b"test", 0o644)
    assert atomic.exists(filename) is True


def test_file_size(tmp_path):
    filename = tmp_path / "size.txt"
    atomic.write_file(filename, b"12345", 0o644)
    assert atomic.file_size(filename) == 5


def test_file_size_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        atomic.file_size(tmp_path / "missing.txt")


def test_write_file_nonexistent_dir(tmp_path):
    with pytest.raises(OSError):
        atomic.write_file(tmp_path / "nonexistent" / "test.txt", b"test", 0o644)


def test_atomicity(tmp_path):
    filename = tmp_path / "atomic.txt"
    atomic.write_file(filename, b"initial", 0o644)

    def writer(ident):
        atomic.write_file(filename, bytes([ident]) * 100, 0o644)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    content = filename.read_bytes()
    assert len(content) == 100
    assert len(set(content)) == 1