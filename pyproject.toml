[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codexdb"
version = "0.1.0"
description = "Storage layer for a file-based key-value database: snapshot and append-only ledger persistence with compression, AES-GCM encryption, checksums and file locking"
requires-python = ">=3.10"
keywords = ["key-value", "database", "ledger", "snapshot", "aes-gcm", "compression", "file-lock"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = [
    "cryptography",
    "zstandard",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["codexdb"]

[tool.pytest.ini_options]
addopts = "-ra"
