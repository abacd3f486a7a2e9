"""Structured JSON-lines logging to an append-only file."""

from __future__ import annotations

import enum
import json
import os
import re
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any


class Level(enum.IntEnum):
    """Severity of a log entry."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4


@dataclass
class Entry:
    """A single log record."""

    timestamp: datetime
    level: str
    message: str
    file: str = ""
    line: int = 0
    function: str = ""
    error: str = ""
    fields: dict[str, str] | None = None


_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(Z|[+-]\d{2}:\d{2})$"
)


def _format_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tz
    )


def _entry_to_json(entry: Entry) -> str:
    record: dict[str, Any] = {
        "timestamp": _format_timestamp(entry.timestamp),
        "level": entry.level,
        "message": entry.message,
    }
    if entry.file:
        record["file"] = entry.file
    if entry.line:
        record["line"] = entry.line
    if entry.function:
        record["function"] = entry.function
    if entry.error:
        record["error"] = entry.error
    if entry.fields:
        record["fields"] = dict(sorted(entry.fields.items()))
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _entry_from_json(line: str) -> Entry:
    record = json.loads(line)
    if not isinstance(record, dict):
        raise ValueError("log line is not an object")
    raw_time = record.get("timestamp")
    timestamp = _ZERO_TIME if raw_time is None else _parse_timestamp(raw_time)
    fields = record.get("fields")
    if fields is not None and not (
        isinstance(fields, dict) and all(isinstance(v, str) for v in fields.values())
    ):
        raise ValueError("invalid fields")
    texts = {}
    for name in ("level", "message", "file", "function", "error"):
        value = record.get(name, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(f"invalid {name}")
        texts[name] = value
    line_no = record.get("line", 0) or 0
    if not isinstance(line_no, int) or isinstance(line_no, bool):
        raise ValueError("invalid line")
    return Entry(timestamp=timestamp, line=line_no, fields=fields, **texts)


class Logger:
    """Thread-safe logger appending one JSON object per line to a file."""

    def __init__(self, file_path: str | os.PathLike, level: Level = Level.INFO) -> None:
        self._file_path = os.fspath(file_path)
        directory = os.path.dirname(self._file_path)
        if directory:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        fd = os.open(self._file_path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, 0o600)
        self._file = os.fdopen(fd, "a", encoding="utf-8")
        self._level = Level(level)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def level(self) -> Level:
        """Minimum level that gets written."""
        with self._lock:
            return self._level

    @level.setter
    def level(self, value: Level) -> None:
        with self._lock:
            self._level = Level(value)

    def _log(
        self,
        level: Level,
        msg: str,
        err: BaseException | None,
        fields: dict[str, str] | None,
    ) -> None:
        if level < self._level:
            return

        entry = Entry(
            timestamp=datetime.now(timezone.utc),
            level=level.name,
            message=msg,
            fields=dict(fields) if fields else None,
        )
        try:
            frame = sys._getframe(2)
        except ValueError:
            frame = None
        if frame is not None:
            filename = frame.f_code.co_filename
            entry.file = os.path.basename(filename)
            entry.line = frame.f_lineno
            module = os.path.splitext(entry.file)[0]
            name = frame.f_code.co_name
            entry.function = f"{module}.{name}" if module else name
        if err is not None:
            entry.error = str(err)

        line = _entry_to_json(entry)
        with self._lock:
            if not self._closed:
                self._file.write(line + "\n")
                self._file.flush()

        if level == Level.FATAL:
            print(f"[FATAL] {msg}: {err}", file=sys.stderr)

    def debug(self, msg: str) -> None:
        self._log(Level.DEBUG, msg, None, None)

    def debug_with_fields(self, msg: str, fields: dict[str, str]) -> None:
        self._log(Level.DEBUG, msg, None, fields)

    def info(self, msg: str) -> None:
        self._log(Level.INFO, msg, None, None)

    def info_with_fields(self, msg: str, fields: dict[str, str]) -> None:
        self._log(Level.INFO, msg, None, fields)

    def warn(self, msg: str) -> None:
        self._log(Level.WARN, msg, None, None)

    def warn_with_error(self, msg: str, err: BaseException | None) -> None:
        self._log(Level.WARN, msg, err, None)

    def error(self, msg: str, err: BaseException | None) -> None:
        self._log(Level.ERROR, msg, err, None)

    def error_with_fields(
        self, msg: str, err: BaseException | None, fields: dict[str, str]
    ) -> None:
        self._log(Level.ERROR, msg, err, fields)

    def fatal(self, msg: str, err: BaseException | None) -> None:
        """Log at fatal level and echo to stderr; the program keeps running."""
        self._log(Level.FATAL, msg, err, None)

    def close(self) -> None:
        """Close the log file; closing twice raises ValueError."""
        with self._lock:
            if self._closed:
                raise ValueError("log file already closed")
            self._closed = True
            self._file.close()

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *args: object) -> None:
        if not self._closed:
            self.close()

    def read_logs(self) -> list[Entry]:
        """Return every well-formed entry in the log file, in order."""
        with self._lock:
            with open(self._file_path, encoding="utf-8") as handle:
                text = handle.read()
        entries = []
        for line in text.split("\n"):
            if not line:
                continue
            try:
                entries.append(_entry_from_json(line))
            except (ValueError, TypeError):
                continue
        return entries