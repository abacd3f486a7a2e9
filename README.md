# codexdb

The storage layer of a small file-based key-value database. It stores a map of
string keys to raw JSON values, which are held as `bytes`, and offers two ways
to persist that map:

- **Snapshot storage** (`codexdb.snapshot.Snapshot`): every write stores the whole
  map. The map is wrapped in a JSON document with a SHA-256 checksum, then
  optionally compressed and optionally encrypted. It is written atomically: a
  temporary file is written and then renamed over the target.
- **Ledger storage** (`codexdb.ledger.Ledger`): an append-only log of set, delete
  and clear operations. Each entry is framed as a 4-byte big-endian length, a
  SHA-256 checksum and the payload, and is flushed to disk with `fsync`. On load
  the log is replayed. If the log ends in a damaged entry, the entries before it
  are kept and the file is truncated after the last good one.

Both take an exclusive, non-blocking OS file lock when they open, so a second
opener of the same database fails.

## Install

```
pip install codexdb
```

To run the tests as well:

```
pip install "codexdb[test]"
pytest
```

## Snapshots

```python
from codexdb.snapshot import Snapshot
from codexdb.storage import Options, PersistRequest

with Snapshot(Options(path="my.db")) as store:
    store.persist(PersistRequest(data={"greeting": b'"hello"', "count": b"3"}))
    print(store.load())   # {'count': b'3', 'greeting': b'"hello"'}
```

The lock is taken on a companion file, `my.db.lock`. `load()` raises
`FileNotFoundError` if no snapshot has been written yet. `persist_batch(requests)`
writes the last `data` map among the requests. If none of them carries one, it
raises `ValueError`.

## Ledger

```python
from codexdb.ledger import Ledger
from codexdb.storage import Options, PersistOp, PersistRequest

with Ledger(Options(path="audit.db")) as log:
    log.persist(PersistRequest(op=PersistOp.SET, key="balance", value=b"100"))
    log.persist(PersistRequest(op=PersistOp.SET, key="balance", value=b"200"))
    log.persist(PersistRequest(op=PersistOp.DELETE, key="balance"))

with Ledger(Options(path="audit.db")) as log:
    print(log.load())     # {}
```

Each value must be valid JSON. It is stored with insignificant whitespace
removed. `PersistOp.CLEAR` empties the map during replay.
`persist_batch(requests)` appends the requests in order.

Both storers are implementations of the abstract base `codexdb.storage.Storer`,
which defines `load`, `persist`, `persist_batch` and `close`.

## Encryption and compression

Both storage modes take the same options:

```python
import os
from codexdb.compression import Algorithm
from codexdb.storage import Options

opts = Options(
    path="secure.db",
    encryption_key=os.urandom(32),   # 16, 24 or 32 bytes: AES-GCM
    compression=Algorithm.ZSTD,      # NONE, GZIP, ZSTD or SNAPPY
    compression_level=3,
)
```

Data is compressed first and then encrypted. The modules can also be used on
their own:

- `codexdb.compression.compress(data, algo, level)` and `decompress(data)`. The
  output starts with a two-byte header naming the algorithm and the level, so
  `decompress` needs no options. An out-of-range level falls back to the
  default: -1 for gzip, 3 for zstd.
  `compression_ratio` and `space_savings` report how well it worked.
- `codexdb.encryption.encrypt(data, key)` and `decrypt(data, key)`. The output
  is a random 12-byte nonce followed by the ciphertext and the tag. Bad keys,
  short input and tampered data raise `EncryptionError`.

## Locking

A second opener of a store that is already open gets
`codexdb.locking.FileLockedError`:

```python
from codexdb.locking import FileLockedError
from codexdb.snapshot import Snapshot
from codexdb.storage import Options

first = Snapshot(Options(path="shared.db"))
try:
    Snapshot(Options(path="shared.db"))
except FileLockedError:
    print("already open elsewhere")
finally:
    first.close()
```

`codexdb.locking.lock(file)` and `unlock(file)` take a file object or a file
descriptor. They use `flock` on Unix and `msvcrt.locking` on Windows.

## Other modules

- `codexdb.batch.Batch` collects operations through a chainable API:
  `Batch().set("a", 1).delete("b")`. It supports `len()`, `operations()` and
  `clear()`. `validate()` raises `BatchError` if the batch is empty or a key is
  empty. `serialize()` returns the operations with their values as compact JSON.
  `optimize_operations()` keeps only the last operation for each key.
- `codexdb.backup.create(path, num_backups)` shifts `path.bak.1` …
  `path.bak.N-1` up by one and copies the current file to `path.bak.1` (the
  newest). It removes anything past `path.bak.N`.
- `codexdb.atomic.write_file(filename, data, perm)` replaces a file safely even
  if the process crashes. The module also has `read_file`, `exists` and
  `file_size`.
- `codexdb.integrity.sign(data)` wraps JSON data in an indented
  `{"checksum": ..., "data": ...}` document. `verify(file_data)` returns the data
  it carries and raises `IntegrityError` when the checksum does not match. Input
  without a checksum is returned unchanged.
- `codexdb.logger.Logger(file_path, level)` appends JSON lines with a timestamp,
  level, message, caller file, line and function, an optional error and optional
  fields. Its minimum level is the `level` property. `read_logs()` returns the
  entries as `Entry` objects. `FATAL` entries are echoed to stderr, and the
  program keeps running.
- `codexdb.dbpath.generate_db_path(name)` returns
  `~/codex/<name>_<YYYYmmdd_HHMMSS>_<16 hex>.db` and creates the directory. It
  reuses an existing `<name>_*.db` file if there is one. `codex_dir()` returns
  `~/codex`.
- `codexdb.errors` provides `CodexError` with an `ErrorType` category, an
  optional cause and context (`with_context`), constructors such as
  `new_not_found_error`, and `is_*` / `get_context` helpers that search an
  exception's cause chain.

## What this package does not do

This is the persistence layer only. It has no store object with `get`/`set`/`has`/
`keys` over typed Python values, and no command-line client. Nothing takes
backups, writes logs or applies batches to a storer on its own. You call
`backup.create`, `Logger` and `Batch` yourself and pass the results to a
`Snapshot` or `Ledger`.