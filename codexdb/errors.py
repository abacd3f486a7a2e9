"""Categorised error type for database operations, with context and cause chains."""

from __future__ import annotations

import enum
from typing import Any


class ErrorType(enum.IntEnum):
    """Category of a :class:`CodexError`."""

    VALIDATION = 0
    NOT_FOUND = 1
    PERMISSION = 2
    IO = 3
    ENCRYPTION = 4
    INTEGRITY = 5
    CONCURRENCY = 6
    INTERNAL = 7


_TYPE_NAMES = {
    ErrorType.VALIDATION: "ValidationError",
    ErrorType.NOT_FOUND: "NotFoundError",
    ErrorType.PERMISSION: "PermissionError",
    ErrorType.IO: "IOError",
    ErrorType.ENCRYPTION: "EncryptionError",
    ErrorType.INTEGRITY: "IntegrityError",
    ErrorType.CONCURRENCY: "ConcurrencyError",
    ErrorType.INTERNAL: "InternalError",
}


class CodexError(Exception):
    """An error with a category, a message, an optional cause and context."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = ErrorType(error_type)
        self.message = message
        self.cause = cause
        self.context = context
        self.__cause__ = cause

    def __str__(self) -> str:
        name = _TYPE_NAMES[self.error_type]
        if self.cause is not None:
            return f"{name}: {self.message}: {self.cause}"
        return f"{name}: {self.message}"

    def with_context(self, key: str, value: Any) -> CodexError:
        """Attach a context value and return the error itself."""
        if self.context is None:
            self.context = {}
        self.context[key] = value
        return self


def new(err_type: ErrorType, message: str) -> CodexError:
    """Create an error of the given type."""
    return CodexError(err_type, message)


def wrap(err_type: ErrorType, message: str, cause: BaseException | None) -> CodexError:
    """Create an error of the given type wrapping ``cause``."""
    return CodexError(err_type, message, cause)


def new_validation_error(message: str) -> CodexError:
    return new(ErrorType.VALIDATION, message)


def new_not_found_error(key: str) -> CodexError:
    return new(ErrorType.NOT_FOUND, f"key not found: {key}")


def new_permission_error(message: str) -> CodexError:
    return new(ErrorType.PERMISSION, message)


def new_io_error(message: str, cause: BaseException | None) -> CodexError:
    return wrap(ErrorType.IO, message, cause)


def new_encryption_error(message: str, cause: BaseException | None) -> CodexError:
    return wrap(ErrorType.ENCRYPTION, message, cause)


def new_integrity_error(message: str) -> CodexError:
    return new(ErrorType.INTEGRITY, message)


def new_concurrency_error(message: str) -> CodexError:
    return new(ErrorType.CONCURRENCY, message)


def new_internal_error(message: str, cause: BaseException | None) -> CodexError:
    return wrap(ErrorType.INTERNAL, message, cause)


def _chain(err: BaseException | None):
    """Yield ``err`` and every exception it was raised from, outermost first."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if err.__cause__ is not None:
            err = err.__cause__
        elif not err.__suppress_context__:
            err = err.__context__
        else:
            err = None


def _first_codex_error(err: BaseException | None) -> CodexError | None:
    return next((e for e in _chain(err) if isinstance(e, CodexError)), None)


def is_type(err: BaseException | None, err_type: ErrorType) -> bool:
    """Tell whether the first CodexError in the chain of ``err`` has ``err_type``."""
    found = _first_codex_error(err)
    return found is not None and found.error_type == err_type


def is_validation_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.VALIDATION)


def is_not_found_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.NOT_FOUND)


def is_permission_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.PERMISSION)


def is_io_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.IO)


def is_encryption_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.ENCRYPTION)


def is_integrity_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.INTEGRITY)


def is_concurrency_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.CONCURRENCY)


def is_internal_error(err: BaseException | None) -> bool:
    return is_type(err, ErrorType.INTERNAL)


def get_context(err: BaseException | None) -> dict[str, Any] | None:
    """Return the context of the first CodexError in the chain, if any."""
    found = _first_codex_error(err)
    return found.context if found is not None else None