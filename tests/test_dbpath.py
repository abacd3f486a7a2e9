import os
import re

import pytest

from codexdb.dbpath import codex_dir, generate_db_path


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    return tmp_path


def test_default_name(home):
    path = generate_db_path("")
    assert os.path.dirname(path) == str(home / "codex")
    assert os.path.basename(path).startswith("codex_")
    assert path.endswith(".db")


def test_custom_name(home):
    path = generate_db_path("mydb")
    assert os.path.basename(path).startswith("mydb_")
    assert path.endswith(".db")


def test_filename_format(home):
    filename = os.path.basename(generate_db_path("testdb"))
    assert re.fullmatch(r"testdb_\d{8}_\d{6}_[0-9a-f]{16}\.db", filename) is not None
    assert filename.split("_")[0] == "testdb"


def test_returns_existing_database(home):
    first = generate_db_path("existing_test_db")
    with open(first, "wb"):
        pass
    second = generate_db_path("existing_test_db")
    assert first == second


def test_ignores_directories_with_matching_name(home):
    (home / "codex" / "mydb_fake.db").mkdir(parents=True)
    path = generate_db_path("mydb")
    filename = os.path.basename(path)
    assert os.path.dirname(path) == str(home / "codex")
    assert filename != "mydb_fake.db"
    assert filename.startswith("mydb_")
    assert len(filename) == len("mydb_20240101_120000_0123456789abcdef.db")


def test_creates_directory(home):
    path = generate_db_path("dirtest")
    assert os.path.dirname(path) == str(home / "codex")
    assert (home / "codex").is_dir()


def test_codex_dir(home):
    assert codex_dir() == str(home / "codex")
    assert not (home / "codex").exists()


def test_different_names_give_different_paths(home):
    path1 = generate_db_path("db1")
    path2 = generate_db_path("db2")
    assert path1 != path2
    assert path1.endswith(".db") and path2.endswith(".db")