"""Helpers for reading and writing JSON and plain-text API bodies."""

from __future__ import annotations

import json
from dataclasses import fields as dataclass_fields
from dataclasses import is_dataclass
from datetime import date, datetime
from http import HTTPStatus
from typing import Any, Iterable

MAX_BODY_BYTES = 1048576
_JSON_SPACE = " \t\n\r"


class MalformedRequest(Exception):
    """A request body that cannot be accepted, with the HTTP status to answer with."""

    def __init__(self, status: int, msg: str) -> None:
        super().__init__(msg)
        self.status = status
        self.msg = msg


class _ConstantRejected(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _ConstantRejected(name)


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _byte_offset(text: str, position: int) -> int:
    return len(text[:position].encode("utf-8"))


def _bad_request(msg: str) -> MalformedRequest:
    return MalformedRequest(HTTPStatus.BAD_REQUEST, msg)


def _badly_formed(text: str, position: int) -> MalformedRequest:
    offset = _byte_offset(text, position) + 1
    return _bad_request(f"Request body contains badly-formed JSON (at position {offset})")


def _check_fields(value: Any, names: Iterable[str], text: str, start: int, end: int) -> None:
    if value is None:
        return
    if not isinstance(value, dict):
        position = start + 1 if isinstance(value, list) else end
        raise _bad_request(
            'Request body contains an invalid value for the "" field '
            f"(at position {_byte_offset(text, position)})"
        )
    allowed = {name.lower() for name in names}
    for key in value:
        if key.lower() not in allowed:
            quoted = json.dumps(key, ensure_ascii=False)
            raise _bad_request(f"Request body contains unknown field {quoted}")


def read_json(body: bytes | str, content_type: str = "", fields: Iterable[str] | None = None) -> Any:
    """Decode a single JSON value from a request body.

    ``fields``, when given, lists the accepted object keys (matched without
    regard to case); any other key is refused. Raises MalformedRequest.
    """
    if content_type:
        media_type = content_type.split(";")[0].strip().lower()
        if media_type != "application/json":
            raise MalformedRequest(
                HTTPStatus.UNSUPPORTED_MEDIA_TYPE, "Content-Type header is not application/json"
            )

    if isinstance(body, str):
        body = body.encode("utf-8")
    if len(body) > MAX_BODY_BYTES:
        raise MalformedRequest(
            HTTPStatus.REQUEST_ENTITY_TOO_LARGE, "Request body must not be larger than 1MB"
        )

    text = body.decode("utf-8", errors="replace")
    start = len(text) - len(text.lstrip(_JSON_SPACE))
    if start == len(text):
        raise _bad_request("Request body must not be empty")

    try:
        value, end = _DECODER.raw_decode(text, start)
    except _ConstantRejected as exc:
        position = text.find(exc.name, start)
        if exc.name.startswith("-"):
            position += 1
        raise _badly_formed(text, position) from None
    except json.JSONDecodeError as exc:
        if exc.pos >= len(text) or exc.msg.startswith("Unterminated string"):
            raise _bad_request("Request body contains badly-formed JSON") from None
        raise _badly_formed(text, exc.pos) from None

    if fields is not None:
        _check_fields(value, fields, text, start, end)

    if text[end:].strip(_JSON_SPACE):
        raise _bad_request("Request body must only contain a single JSON object")

    return value


def _jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _jsonable(getattr(obj, f.name)) for f in dataclass_fields(obj)}
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in sorted(obj.items(), key=lambda kv: str(kv[0]))}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(item) for item in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return obj


def write_json(data: Any) -> tuple[str, bytes]:
    """Encode ``data`` as a JSON response body; returns (content type, body)."""
    encoded = json.dumps(_jsonable(data), ensure_ascii=False, separators=(",", ":"))
    for char, escape in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        encoded = encoded.replace(char, escape)
    return "application/json", (encoded + "\n").encode("utf-8")


def write_plaintext(text: str) -> tuple[str, bytes]:
    """Encode ``text`` as a plain-text response body; returns (content type, body)."""
    return "text/plain", text.encode("utf-8")