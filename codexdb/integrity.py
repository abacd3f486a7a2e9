"""SHA-256 checksummed file envelope: ``{"checksum": ..., "data": ...}``."""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

_WHITESPACE = " \t\n\r"
_WS_RE = re.compile(r"[ \t\n\r]*")


class IntegrityError(ValueError):
    """The stored checksum does not match the stored data."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _compact(text: str) -> str:
    """Remove insignificant whitespace from JSON text."""
    out: list[str] = []
    in_string = escaped = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch in _WHITESPACE:
            continue
        else:
            out.append(ch)
            if ch == '"':
                in_string = True
    return "".join(out)


def _indent(text: str, indent: str = "  ") -> str:
    """Indent compact JSON text, keeping empty objects and arrays on one line."""
    out: list[str] = []
    depth = 0
    need_indent = in_string = escaped = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if need_indent and ch not in "]}":
            need_indent = False
            depth += 1
            out.append("\n" + indent * depth)
        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            need_indent = True
            out.append(ch)
        elif ch == ",":
            out.append(",\n" + indent * depth)
        elif ch == ":":
            out.append(": ")
        elif ch in "}]":
            if need_indent:
                need_indent = False
            else:
                depth -= 1
                out.append("\n" + indent * depth)
            out.append(ch)
        else:
            out.append(ch)
    return "".join(out)


def sign(data: bytes) -> bytes:
    """Wrap JSON ``data`` in an indented envelope carrying its SHA-256 checksum."""
    data = bytes(data)
    text = data.decode("utf-8")
    _loads(text)
    checksum = hashlib.sha256(data).hexdigest()
    document = '{"checksum":"%s","data":%s}' % (checksum, _compact(text))
    return _indent(document).encode("utf-8")


def _top_level_fields(file_data: bytes) -> dict[str, tuple[Any, str]] | None:
    """Map lower-cased keys of a top-level JSON object to (value, raw text)."""
    try:
        text = bytes(file_data).decode("utf-8")
        document = _loads(text)
    except ValueError:
        return None
    if not isinstance(document, dict):
        return None

    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    fields: dict[str, tuple[Any, str]] = {}
    pos = _WS_RE.match(text).end() + 1
    while True:
        pos = _WS_RE.match(text, pos).end()
        if text[pos] == "}":
            break
        key, pos = decoder.raw_decode(text, pos)
        pos = _WS_RE.match(text, pos).end() + 1
        pos = _WS_RE.match(text, pos).end()
        value, end = decoder.raw_decode(text, pos)
        fields[key.casefold()] = (value, text[pos:end])
        pos = _WS_RE.match(text, end).end()
        if text[pos] == ",":
            pos += 1
    return fields


def verify(file_data: bytes) -> bytes:
    """Check the envelope and return the raw data it carries.

    Content that is not a checksummed envelope is returned unchanged.
    """
    fields = _top_level_fields(file_data)
    if fields is None:
        return file_data

    checksum = fields.get("checksum", (None, ""))[0]
    if checksum is not None and not isinstance(checksum, str):
        return file_data
    if not checksum or "data" not in fields:
        return file_data

    raw = fields["data"][1]
    calculated = hashlib.sha256(_compact(raw).encode("utf-8")).hexdigest()
    if calculated != checksum:
        raise IntegrityError("file integrity check failed: checksum mismatch")
    return raw.encode("utf-8")