"""Storage layer for a file-based key-value database: snapshot and ledger
persistence with compression, encryption, checksums, locking and helpers."""

__version__ = "0.1.0"

__all__ = [
    "atomic",
    "backup",
    "batch",
    "compression",
    "dbpath",
    "encryption",
    "errors",
    "integrity",
    "ledger",
    "locking",
    "logger",
    "snapshot",
    "storage",
]