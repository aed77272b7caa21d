"""General purpose helpers shared across the codebase."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Hashable, Iterable, TypeVar

T = TypeVar("T")
H = TypeVar("H", bound=Hashable)

ZERO_TIME = datetime(1, 1, 1)
"""Value returned when a date or time string cannot be parsed."""

_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_SHORT_DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{2})")
_SQLITE_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:[.,](\d+))?"
)


@dataclass
class Tree:
    """A named node with ordered children."""

    name: str = ""
    children: list[Tree] = field(default_factory=list)


def get_path_parts(path: str) -> list[str]:
    """Split a URL path into its segments, ignoring one leading slash."""
    return path.removeprefix("/").split("/")


def add_string_parts_to_tree(tree: Tree, parts: Iterable[str]) -> None:
    """Insert a chain of path segments below ``tree``.

    Existing children with the same name are reused; empty segments become
    ``"index"``.
    """
    node = tree
    for part in parts:
        name = part or "index"
        child = next((c for c in node.children if c.name == name), None)
        if child is None:
            child = Tree(name)
            node.children.append(child)
        node = child


def capitalize_first_letter(s: str) -> str:
    """Upper-case the first character of ``s``."""
    if not s:
        return s
    first = s[0].upper()
    if len(first) != 1:
        first = s[0]
    return first + s[1:]


def int_abs(x: int) -> int:
    """Absolute value of an integer."""
    return -x if x < 0 else x


def make_url_params(base: str, *args: tuple[str, str]) -> str:
    """Append ``key=value`` pairs to ``base`` as a query string."""
    if not args:
        return base
    return base + "?" + "&".join(f"{key}={value}" for key, value in args)


def snake_case_to_title_case(s: str) -> str:
    """Turn ``snake_case`` into ``Title Case`` words."""
    return " ".join(capitalize_first_letter(part) for part in s.split("_"))


def to_string(value: Any) -> str:
    """Format a value the way the templates expect it."""
    if value is None:
        return "<nil>"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value:d}"
    if isinstance(value, float):
        return f"{value:f}"
    return str(value)


def _parse_iso_date(text: str) -> datetime | None:
    match = _ISO_DATE_RE.fullmatch(text)
    if match is None:
        return None
    try:
        return datetime(*(int(g) for g in match.groups()))
    except ValueError:
        return None


def html_date_to_time(date: str) -> datetime:
    """Parse an HTML ``YYYY-MM-DD`` date, or return :data:`ZERO_TIME`."""
    parsed = _parse_iso_date(date)
    return parsed if parsed is not None else ZERO_TIME


def time_to_sqlite_string(t: datetime) -> str:
    """Format a timestamp the way SQLite stores it."""
    return t.strftime("%Y-%m-%d %H:%M:%S").rjust(19, "0")


def sqlite_string_to_time(text: str) -> datetime:
    """Parse a SQLite timestamp, with or without fractional seconds."""
    match = _SQLITE_RE.fullmatch(text)
    if match is None:
        return ZERO_TIME
    *whole, fraction = match.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    try:
        return datetime(*(int(g) for g in whole), micro)
    except ValueError:
        return ZERO_TIME


def _clock(t: datetime) -> str:
    hour = t.hour % 12 or 12
    suffix = "PM" if t.hour >= 12 else "AM"
    return f"{hour:02d}:{t.minute:02d} {suffix}"


def _short_date(t: datetime) -> str:
    return f"{t.month:02d}/{t.day:02d}/{t.year % 100:02d}"


def time_to_time_string(t: datetime) -> str:
    """Format the clock time as ``hh:mm AM``."""
    return _clock(t)


def time_to_string(t: datetime) -> str:
    """Format as ``mm/dd/yy hh:mm AM``."""
    return f"{_short_date(t)} {_clock(t)}"


def date_to_string(t: datetime) -> str:
    """Format as ``mm/dd/yy``."""
    return _short_date(t)


def string_to_date(text: str) -> datetime:
    """Parse ``mm/dd/yy`` or ``YYYY-MM-DD``; unparseable input gives :data:`ZERO_TIME`."""
    match = _SHORT_DATE_RE.fullmatch(text)
    if match is not None:
        month, day, year = (int(g) for g in match.groups())
        year += 1900 if year >= 69 else 2000
        try:
            return datetime(year, month, day)
        except ValueError:
            pass
    parsed = _parse_iso_date(text)
    return parsed if parsed is not None else ZERO_TIME


def reverse(items: list[T]) -> None:
    """Reverse a list in place."""
    items.reverse()


def contains(items: Iterable[T], element: T) -> bool:
    """Whether ``element`` occurs in ``items``."""
    return any(item == element for item in items)


def index_of(items: Iterable[T], element: T) -> int:
    """Position of the first ``element`` in ``items``, or -1."""
    return next((i for i, item in enumerate(items) if item == element), -1)


def remove(items: list[T], element: T) -> list[T]:
    """Return a copy of ``items`` without the first ``element``.

    Raises ValueError if ``element`` is absent.
    """
    position = index_of(items, element)
    if position < 0:
        raise ValueError(f"{element!r} is not in the list")
    return items[:position] + items[position + 1 :]


def remove_duplicates(items: Iterable[H]) -> list[H]:
    """Drop repeated elements, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def get_first_n_chars(s: str, n: int) -> str:
    """The first ``n`` characters of ``s``; a negative ``n`` returns ``s``."""
    if n < 0:
        return s
    return s[:n]