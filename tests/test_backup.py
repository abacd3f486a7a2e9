import os

from codexdb import backup


def test_create_rotates_backups(tmp_path):
    store_path = tmp_path / "test.db"
    store_path.write_bytes(b"version0")
    num_backups = 3

    for i in range(1, 6):
        backup.create(store_path, num_backups)
        store_path.write_bytes(f"version{i}".encode())

    for i in range(1, num_backups + 1):
        assert os.path.exists(f"{store_path}.bak.{i}")
    assert not os.path.exists(f"{store_path}.bak.{num_backups + 1}")

    with open(f"{store_path}.bak.1", "rb") as handle:
        assert handle.read() == b"version4"
    with open(f"{store_path}.bak.2", "rb") as handle:
        assert handle.read() == b"version3"
    with open(f"{store_path}.bak.3", "rb") as handle:
        assert handle.read() == b"version2"


def test_create_with_zero_backups_does_nothing(tmp_path):
    store_path = tmp_path / "test.db"
    store_path.write_bytes(b"data")
    result = backup.create(store_path, 0)
    assert result is None
    assert sorted(os.listdir(tmp_path)) == ["test.db"]
    assert store_path.read_bytes() == b"data"


def test_create_without_main_file(tmp_path):
    backup.create(tmp_path / "missing.db", 3)
    assert os.listdir(tmp_path) == []


def test_create_single_backup_keeps_only_latest(tmp_path):
    store_path = tmp_path / "one.db"
    store_path.write_bytes(b"a")
    backup.create(store_path, 1)
    store_path.write_bytes(b"b")
    backup.create(store_path, 1)
    assert sorted(os.listdir(tmp_path)) == ["one.db", "one.db.bak.1"]
    with open(f"{store_path}.bak.1", "rb") as handle:
        assert handle.read() == b"b"