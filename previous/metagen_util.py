"""Small helpers used by the code generator."""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import unquote

_NOTE_RE = re.compile(r"@(\w+)", re.ASCII)
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class UnknownNoteError(ValueError):
    """A doc comment names a note that is not recognised."""

    def __init__(self, filename: str, note: str, identifier: str, valid: list[str]) -> None:
        self.filename = filename
        self.note = note
        self.identifier = identifier
        self.valid = valid
        super().__init__(
            f"\n`{filename}`: Unknown note `@{note}`, Identifier: `{identifier}`\n"
            f"\tValid values are: [{' '.join(valid)}]"
        )


def print_status(ok: bool) -> None:
    """Finish a progress line with SUCCESS or FAILED."""
    print(f"... {'SUCCESS' if ok else 'FAILED'}")


def _unescape(dsn: str, text: str) -> str:
    bad = _BAD_ESCAPE_RE.search(text)
    if bad is not None:
        start = bad.start()
        raise ValueError(f'parse "{dsn}": invalid URL escape "{text[start:start + 3]}"')
    return unquote(text)


def _split_scheme(dsn: str, url: str) -> tuple[str, str]:
    for i, char in enumerate(url):
        if char.isascii() and char.isalpha():
            continue
        if char.isascii() and (char.isdigit() or char in "+-."):
            if i == 0:
                return "", url
            continue
        if char == ":":
            if i == 0:
                raise ValueError(f'parse "{dsn}": missing protocol scheme')
            return url[:i].lower(), url[i + 1 :]
        return "", url
    return "", url


def parse_sqlite_filename(dsn: str) -> str:
    """The database file named by a SQLite DSN: a plain path or a ``file:`` URI.

    Raises ValueError for other schemes and for malformed input.
    """
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in dsn):
        raise ValueError(f'parse "{dsn}": net/url: invalid control character in URL')

    url, _, fragment = dsn.partition("#")
    scheme, rest = _split_scheme(dsn, url)

    if rest.endswith("?") and rest.count("?") == 1:
        rest = rest[:-1]
    else:
        rest = rest.partition("?")[0]

    if not rest.startswith("/"):
        if scheme:
            _unescape(dsn, fragment)
            opaque = rest
            path = None
        else:
            if ":" in rest.partition("/")[0]:
                raise ValueError(f'parse "{dsn}": first path segment in URL cannot contain colon')
            opaque = ""
            path = rest
    else:
        opaque = ""
        path = rest

    if path is not None:
        if (scheme or not path.startswith("///")) and path.startswith("//"):
            authority = path[2:]
            slash = authority.find("/")
            path = authority[slash:] if slash >= 0 else ""
        path = _unescape(dsn, path)
        _unescape(dsn, fragment)

    if scheme == "":
        return path or ""
    if scheme == "file":
        return opaque
    raise ValueError(f"invalid DSN format: {dsn}")


def parse_notes(
    docstring: str | None,
    identifier: str,
    filename: str,
    note_names: Iterable[str],
) -> dict[str, bool]:
    """Which of ``note_names`` appear as ``@Name`` in ``docstring``.

    Raises UnknownNoteError for an ``@`` note that is not one of ``note_names``.
    """
    valid = list(note_names)
    found = _NOTE_RE.findall(docstring or "")
    for note in found:
        if note not in valid:
            raise UnknownNoteError(filename, note, identifier, valid)
    return {name: name in found for name in valid}