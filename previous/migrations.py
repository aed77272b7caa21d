"""SQL schema migrations for SQLite, and creation of new migration files."""

from __future__ import annotations

import glob
import os
import re
import sqlite3
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

DEFAULT_TIME_FORMAT = "20060102150405"
DEFAULT_TIMEZONE = "UTC"
NIL_VERSION = -1

_MIGRATION_RE = re.compile(r"^([0-9]+)_(.*)\.(down|up)\.(.*)$")
_UINT64_MAX = 2**64 - 1
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_LAYOUT_TOKENS = {
    "January": "%B",
    "Monday": "%A",
    "2006": "%Y",
    "Jan": "%b",
    "Mon": "%a",
    "MST": "%Z",
    "15": "%H",
    "01": "%m",
    "02": "%d",
    "03": "%I",
    "04": "%M",
    "05": "%S",
    "06": "%y",
    "PM": "%p",
}
_LAYOUT_RE = re.compile("(" + "|".join(_LAYOUT_TOKENS) + ")")

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS schema_migrations (version uint64, dirty bool);\n"
    "CREATE UNIQUE INDEX IF NOT EXISTS version_unique ON schema_migrations (version);"
)


class MigrationError(Exception):
    """A migration could not be created, found or applied."""


@dataclass
class _Migration:
    version: int
    up: Path | None = None
    down: Path | None = None


def _database_path(database: str | os.PathLike) -> str:
    text = os.fspath(database)
    for scheme in ("sqlite3://", "sqlite://"):
        if text.startswith(scheme):
            return text[len(scheme) :].split("?", 1)[0]
    return text


def _load_migrations(source_dir: Path) -> dict[int, _Migration]:
    if not source_dir.is_dir():
        raise MigrationError(f"open {source_dir}: no such file or directory")
    migrations: dict[int, _Migration] = {}
    for entry in sorted(source_dir.iterdir()):
        match = _MIGRATION_RE.match(entry.name)
        if match is None or not entry.is_file():
            continue
        version = int(match.group(1))
        direction = match.group(3)
        migration = migrations.setdefault(version, _Migration(version))
        if getattr(migration, direction) is not None:
            raise MigrationError(f"duplicate migration file: {entry.name}")
        setattr(migration, direction, entry)
    return migrations


class Migrator:
    """Applies numbered ``.up``/``.down`` SQL files to a SQLite database.

    The applied version is kept in a ``schema_migrations`` table together with
    a dirty flag that stays set when a migration fails part way.
    """

    def __init__(self, source_dir: str | os.PathLike, database: str | os.PathLike) -> None:
        self._migrations = _load_migrations(Path(source_dir))
        self._versions = sorted(self._migrations)
        self._conn = sqlite3.connect(_database_path(database), isolation_level=None)
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> Migrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def up(self) -> None:
        """Apply every migration newer than the current version."""
        current = self._current()
        start = 0 if current == NIL_VERSION else self._index(current) + 1
        pending = self._versions[start:]
        if not pending:
            raise MigrationError("no change")
        for version in pending:
            self._run(version, "up", version)

    def down(self) -> None:
        """Revert every applied migration."""
        current = self._current()
        if current == NIL_VERSION:
            raise MigrationError("no change")
        applied = self._versions[: self._index(current) + 1]
        for version in reversed(applied):
            self._run(version, "down", self._previous(version))

    def migrate(self, version: int) -> None:
        """Move the database up or down to ``version``."""
        current = self._current()
        if version not in self._migrations:
            raise MigrationError(f"no migration found for version {version}")
        if current == version:
            raise MigrationError("no change")
        if current != NIL_VERSION:
            self._index(current)
        if current == NIL_VERSION or current < version:
            for step in (v for v in self._versions if current < v <= version):
                self._run(step, "up", step)
        else:
            for step in reversed([v for v in self._versions if version < v <= current]):
                self._run(step, "down", self._previous(step))

    def version(self) -> tuple[int, bool] | None:
        """The applied version and dirty flag, or None when nothing is applied."""
        version, dirty = self._read_version()
        if version == NIL_VERSION and not dirty:
            return None
        return version, dirty

    def _read_version(self) -> tuple[int, bool]:
        row = self._conn.execute("SELECT version, dirty FROM schema_migrations LIMIT 1").fetchone()
        if row is None:
            return NIL_VERSION, False
        return int(row[0]), bool(row[1])

    def _current(self) -> int:
        version, dirty = self._read_version()
        if dirty:
            raise MigrationError(f"Dirty database version {version}. Fix and force version.")
        return version

    def _index(self, version: int) -> int:
        try:
            return self._versions.index(version)
        except ValueError:
            raise MigrationError(f"no migration found for version {version}") from None

    def _previous(self, version: int) -> int:
        position = self._index(version)
        return self._versions[position - 1] if position > 0 else NIL_VERSION

    def _set_version(self, version: int, dirty: bool) -> None:
        try:
            self._conn.execute("BEGIN")
            self._conn.execute("DELETE FROM schema_migrations")
            if version >= 0 or (version == NIL_VERSION and dirty):
                self._conn.execute(
                    "INSERT INTO schema_migrations (version, dirty) VALUES (?, ?)",
                    (version, int(dirty)),
                )
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise MigrationError(f"cannot set version {version}: {exc}") from exc

    def _run(self, version: int, direction: str, target: int) -> None:
        path = getattr(self._migrations[version], direction)
        if path is not None:
            self._set_version(target, True)
            body = path.read_text(encoding="utf-8")
            try:
                self._conn.executescript(f"BEGIN;\n{body}\n;COMMIT;")
            except sqlite3.Error as exc:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise MigrationError(f"migration {path.name} failed: {exc}") from exc
        self._set_version(target, False)


def next_seq_version(matches: Sequence[str], seq_digits: int) -> str:
    """The zero-padded sequence number following the last file in ``matches``."""
    if seq_digits <= 0:
        raise MigrationError("Digits must be positive")

    next_seq = 1
    if matches:
        filename = matches[-1]
        base = os.path.basename(filename)
        idx = base.find("_")
        if idx < 1:
            raise MigrationError(f"Malformed migration filename: {filename}")
        digits = base[:idx]
        if not digits.isascii() or not digits.isdigit():
            raise MigrationError(f'strconv.ParseUint: parsing "{digits}": invalid syntax')
        if int(digits) > _UINT64_MAX:
            raise MigrationError(f'strconv.ParseUint: parsing "{digits}": value out of range')
        next_seq = int(digits) + 1

    version = str(next_seq).zfill(seq_digits)
    if len(version) > seq_digits:
        raise MigrationError(
            f"Next sequence number {version} too large. At most {seq_digits} digits are allowed"
        )
    return version


def _format_layout(t: datetime, layout: str) -> str:
    pattern = "".join(
        _LAYOUT_TOKENS[part] if i % 2 else part.replace("%", "%%")
        for i, part in enumerate(_LAYOUT_RE.split(layout))
    )
    return t.strftime(pattern)


def time_version(start_time: datetime, fmt: str) -> str:
    """A version string from ``start_time``: ``unix``, ``unixNano`` or a date layout."""
    if fmt == "":
        raise MigrationError("Time format may not be empty")
    if fmt in ("unix", "unixNano"):
        aware = start_time if start_time.tzinfo is not None else start_time.astimezone()
        delta = aware - _EPOCH
        seconds = delta.days * 86400 + delta.seconds
        if fmt == "unix":
            return str(seconds)
        return str(seconds * 10**9 + delta.microseconds * 1000)
    return _format_layout(start_time, fmt)


def create_migration(
    directory: str | os.PathLike,
    start_time: datetime,
    fmt: str,
    name: str,
    ext: str,
    seq: bool,
    seq_digits: int,
    verbose: bool,
) -> list[str]:
    """Create an empty up/down pair of migration files; returns their paths."""
    if seq and fmt != DEFAULT_TIME_FORMAT:
        raise MigrationError("The seq and format options are mutually exclusive")

    directory = os.path.normpath(os.fspath(directory))
    ext = "." + ext.removeprefix(".")
    escaped = glob.escape(directory)

    if seq:
        matches = sorted(glob.glob(os.path.join(escaped, "*" + ext)))
        version = next_seq_version(matches, seq_digits)
    else:
        version = time_version(start_time, fmt)

    if glob.glob(os.path.join(escaped, glob.escape(version) + "_*" + ext)):
        raise MigrationError(f"duplicate migration version: {version}")

    os.makedirs(directory, exist_ok=True)

    created = []
    for direction in ("up", "down"):
        filename = os.path.join(directory, f"{version}_{name}.{direction}{ext}")
        with open(filename, "x"):
            pass
        created.append(filename)
        if verbose:
            print(os.path.abspath(filename), file=sys.stderr)
    return created