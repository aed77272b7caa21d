"""Compilation of inline CSS blocks found in component sources into one stylesheet."""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

from previous.basic import get_first_n_chars
from previous.constants import DATA_HASH_KEY
from previous.metagen_util import print_status

METAGEN_NOTICE = (
    "@Metagen -- THIS FILE WAS AUTOGENERATED OR PREPROCESSED BY METAGEN - DO NOT EDIT BY HAND"
)
METAGEN_AUTO_COMMENT = "// " + METAGEN_NOTICE

STYLE_SOURCE_DIRS = ("handlers", "ui")
STYLE_SOURCE_SUFFIX = ".py"
DEFAULT_STYLE_OUTPUT = os.path.join("wwwroot", "css", "style.metagen.css")
STYLE_ID_LENGTH = 8

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_INLINE_STYLE_RE = re.compile(
    r"InlineStyle\((((?:'[^']*')|(?:\"[^\"]*\")|(`(?:[^`]|[\r\n])*?`)))\)"
)
_SPACING_RE = re.compile(r"\$([0-9]+(?:\.[0-9]+)?)")
_COLOR_RE = re.compile(r"\$color\((.*?)(?:/(0*(?:[1-9][0-9]?|100)))?\)")

_MEDIA_MACROS = (
    ("$dark", "(prefers-color-scheme: dark)"),
    ("$light", "(prefers-color-scheme: light)"),
    ("$xs-", "screen and (max-width: 639px)"),
    ("$sm-", "screen and (max-width: 767px)"),
    ("$md-", "screen and (max-width: 1023px)"),
    ("$lg-", "screen and (max-width: 1279px)"),
    ("$xl-", "screen and (max-width: 1535px)"),
    ("$sm", "screen and (min-width: 640px)"),
    ("$md", "screen and (min-width: 768px)"),
    ("$lg", "screen and (min-width: 1024px)"),
    ("$xl", "screen and (min-width: 1280px)"),
    ("$xx", "screen and (min-width: 1536px)"),
)

_QUOTES = ('"', "'", "`")


def expand_spacing(text: str) -> str:
    """Expand ``$N`` into ``calc(var(--spacing) * N)``."""
    return _SPACING_RE.sub(lambda m: f"calc(var(--spacing) * {m.group(1)})", text)


def _color(match: re.Match) -> str:
    name, opacity = match.group(1), match.group(2)
    if not opacity:
        return f"var(--color-{name})"
    return f"oklch(from var(--color-{name}) l c h / {opacity}%)"


def expand_color(text: str) -> str:
    """Expand ``$color(name)`` and ``$color(name/opacity)`` into CSS colour values."""
    return _COLOR_RE.sub(_color, text)


def expand_media(text: str) -> str:
    """Expand the shorthand media query macros such as ``$md`` and ``$dark``."""
    for macro, replacement in _MEDIA_MACROS:
        text = text.replace(macro, replacement)
    return text


def expand_me(text: str, replacement_id: str) -> str:
    """Replace ``$me`` with the attribute selector of the styled element."""
    return text.replace("$me", f"[__inlinecss_{replacement_id}]")


def strip_comments(source: str) -> str:
    """Remove lines that are ``//`` comments or part of ``/* ... */`` comments."""
    result = source
    in_block = False
    for line in source.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        if in_block:
            if "*/" in trimmed:
                in_block = False
            result = result.replace(line, "")
            continue
        if trimmed.startswith("/*"):
            in_block = "*/" not in trimmed
            result = result.replace(line, "")
            continue
        if trimmed.startswith("//"):
            result = result.replace(line, "")
    return result


def _clean_literal(literal: str) -> str:
    for quote in _QUOTES:
        literal = literal.removeprefix(quote)
    for quote in _QUOTES:
        literal = literal.removesuffix(quote)
    return literal.replace("\n", " ").replace("\t", "")


def extract_inline_styles(source: str) -> list[str]:
    """The literal arguments of every ``InlineStyle(...)`` call, in order of appearance."""
    return [_clean_literal(match.group(1)) for match in _INLINE_STYLE_RE.finditer(source)]


def _base58(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    padding = len(data) - len(data.lstrip(b"\0"))
    return "1" * padding + "".join(reversed(digits))


def default_style_id(raw: str) -> str:
    """A short, stable identifier for a style block, derived from a keyed hash."""
    digest = hashlib.blake2b(
        raw.encode("utf-8"), key=DATA_HASH_KEY.encode("utf-8"), digest_size=32
    ).digest()
    return get_first_n_chars(_base58(digest), STYLE_ID_LENGTH)


def compile_inline_styles(
    sources: Iterable[str], style_id: Callable[[str], str] | None = None
) -> str:
    """Build the stylesheet for every distinct inline style found in ``sources``."""
    make_id = style_id or default_style_id
    seen: set[str] = set()
    blocks = []
    for source in sources:
        for raw in extract_inline_styles(strip_comments(source)):
            if raw in seen:
                continue
            seen.add(raw)
            css = expand_me(raw, make_id(raw))
            css = expand_media(css)
            css = expand_color(css)
            blocks.append(expand_spacing(css))
    return "/* " + METAGEN_AUTO_COMMENT + " */\n" + "".join(blocks)


def _walk(root: str) -> Iterator[str]:
    if not os.path.lexists(root):
        raise FileNotFoundError(f"lstat {root}: no such file or directory")
    if os.path.isdir(root):
        for name in sorted(os.listdir(root)):
            yield from _walk(os.path.join(root, name))
    else:
        yield root


def _read_sources(directories: Sequence[str]) -> Iterator[str]:
    for directory in directories:
        for path in _walk(directory):
            if path.endswith(STYLE_SOURCE_SUFFIX) and os.path.isfile(path):
                yield Path(path).read_text(encoding="utf-8", errors="replace")


def generate_inline_styles(
    directories: Sequence[str] = STYLE_SOURCE_DIRS,
    output_path: str | os.PathLike = DEFAULT_STYLE_OUTPUT,
    style_id: Callable[[str], str] | None = None,
) -> str:
    """Scan component sources for inline styles and write the compiled stylesheet."""
    print("Compiling Inline Styles", end="")
    try:
        css = compile_inline_styles(_read_sources(directories), style_id)
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(css, encoding="utf-8")
    except OSError:
        print_status(False)
        raise
    print_status(True)
    return css