"""Command-line code generator: builds assets, writes debug settings, runs migrations."""

from __future__ import annotations

import argparse
import os
import re
import sqlite3
import subprocess
import sys
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from previous.css_preprocessor import METAGEN_NOTICE, generate_inline_styles
from previous.metagen_util import print_status
from previous.migrations import (
    DEFAULT_TIME_FORMAT,
    MigrationError,
    Migrator,
    create_migration,
)

DEFAULT_DB_PATH = "example.db"
DEFAULT_MIGRATIONS_DIR = "migrations"
DEFAULT_DEBUG_CONFIG_PATH = os.path.join("previous", "debug_metagen.py")
SERVER_PACKAGE = "previous"

_MIGRATE_USAGE = "Usage: metagen migrate [up, down, goto {V}, create {migration name}]"
_INT_RE = re.compile(r"[+-]?[0-9]+")


class Environment(IntEnum):
    """The environment a build targets."""

    DEV = 0
    STAGING = 1
    PRODUCTION = 2


_ENVIRONMENTS = {
    "dev": Environment.DEV,
    "staging": Environment.STAGING,
    "production": Environment.PRODUCTION,
}


def parse_environment(name: str) -> Environment:
    """The environment called ``name``: dev, staging or production."""
    try:
        return _ENVIRONMENTS[name]
    except KeyError:
        raise ValueError(f"Invalid environment specified: {name}") from None


def debug_config_source(environment: Environment) -> str:
    """Source of the generated module holding the DEBUG flag."""
    debug = "True" if environment == Environment.DEV else "False"
    return f"# {METAGEN_NOTICE}\n\nDEBUG = {debug}\n"


def generate_debug_config(
    environment: Environment, output_path: str | os.PathLike = DEFAULT_DEBUG_CONFIG_PATH
) -> None:
    """Write the module that tells the server whether it is a debug build."""
    print("Generating DEBUG/RELEASE config", end="")
    try:
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(debug_config_source(environment), encoding="utf-8")
    except OSError:
        print_status(False)
        raise
    print_status(True)


def _connection(connection_string: str | None, db_path: str | os.PathLike) -> str:
    if connection_string is not None:
        return connection_string
    return os.environ.get("MIGRATION_CONNECTION_STRING") or os.fspath(db_path)


def maybe_create_sqlite_db(
    db_path: str | os.PathLike = DEFAULT_DB_PATH,
    migrations_dir: str | os.PathLike = DEFAULT_MIGRATIONS_DIR,
    connection_string: str | None = None,
) -> bool:
    """Create and fully migrate the database file if it does not exist yet.

    Returns whether a database was created.
    """
    if os.path.exists(db_path):
        return False

    print("Creating new sqlite database", end="")
    try:
        Path(db_path).write_bytes(b"")
    except OSError:
        print("Error creating Sqlite database.")
        raise

    try:
        with Migrator(migrations_dir, _connection(connection_string, db_path)) as migrator:
            migrator.up()
    except (MigrationError, sqlite3.Error):
        print_status(False)
        raise

    print_status(True)
    return True


def _fail(message: str) -> None:
    print(message)
    raise SystemExit(1)


def run_migrations(
    args: Sequence[str],
    db_path: str | os.PathLike = DEFAULT_DB_PATH,
    migrations_dir: str | os.PathLike = DEFAULT_MIGRATIONS_DIR,
    connection_string: str | None = None,
) -> None:
    """Handle ``migrate up|down|goto V|create NAME``; ``args`` starts with ``migrate``."""
    if len(args) < 2:
        _fail(_MIGRATE_USAGE)

    try:
        maybe_create_sqlite_db(db_path, migrations_dir, connection_string)
        migrator = Migrator(migrations_dir, _connection(connection_string, db_path))
    except (MigrationError, OSError, sqlite3.Error) as exc:
        _fail(str(exc))

    with migrator:
        target = 0
        if len(args) >= 3 and args[1] != "create":
            if _INT_RE.fullmatch(args[2]) is None:
                _fail("Please provide a valid migration number.")
            target = int(args[2])

        command = args[1]
        try:
            if command == "up":
                migrator.up()
            elif command == "down":
                migrator.down()
            elif command == "goto":
                migrator.migrate(target)
            elif command == "create":
                if len(args) < 3:
                    _fail("Please provide a name for the new migration.")
                create_migration(
                    migrations_dir, datetime.now(), DEFAULT_TIME_FORMAT, args[2], "sql", True, 7, True
                )
        except (MigrationError, OSError, sqlite3.Error) as exc:
            print(exc)


def compile_server(environment: Environment) -> None:
    """Byte-compile the server package; exits with status 1 when that fails."""
    print("Compiling Server", end="")
    command = [sys.executable, "-m", "compileall", "-q", SERVER_PACKAGE]
    if environment != Environment.DEV:
        command[3:3] = ["-o", "1"]
    result = subprocess.run(
        command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
    )
    if result.returncode != 0:
        print(f"\n{result.stdout}")
        print(f"exit status {result.returncode}")
        raise SystemExit(1)
    print_status(True)


def help_message() -> None:
    """Print usage and exit with status 1."""
    print("Usage: metagen [options...]")
    print("build :: Build dependencies, generate code, then build final executables.")
    print(
        "migrate [up, down, goto {V}, create {migration name}] :: Deploy and create SQL migrations."
    )
    raise SystemExit(1)


def _pre_build(environment: Environment) -> None:
    if environment == Environment.DEV:
        print("[DEBUG ENVIRONMENT]")
    else:
        print("[RELEASE ENVIRONMENT]")
    maybe_create_sqlite_db()
    generate_inline_styles()
    generate_debug_config(environment)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the ``metagen`` command."""
    if not os.path.isfile(".env"):
        print(
            "Error reading .env file. If it doesn't exist, copy the contents of `example.env` "
            "into `.env` in the project root directory."
        )
        raise SystemExit(1)
    load_dotenv(".env")

    parser = argparse.ArgumentParser(prog="metagen", add_help=False)
    parser.add_argument(
        "-env",
        "--env",
        default="dev",
        help="The environment to run in: dev, staging, or production",
    )
    parser.add_argument("args", nargs=argparse.REMAINDER)
    options = parser.parse_args(argv)

    try:
        environment = parse_environment(options.env)
    except ValueError as exc:
        print(exc)
        _fail("Allowed values are: dev, staging, or production")

    args = options.args
    if not args:
        help_message()

    command = args[0]
    try:
        if command == "build-all":
            _pre_build(environment)
            compile_server(environment)
        elif command == "build":
            _pre_build(environment)
        elif command == "migrate":
            run_migrations(args)
        else:
            help_message()
    except (MigrationError, OSError, sqlite3.Error) as exc:
        _fail(str(exc))
    return 0