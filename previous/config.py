"""Runtime settings read from environment variables at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Mapping

from dotenv import load_dotenv

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


class ConfigError(ValueError):
    """An environment variable holds a value of the wrong kind."""


def _text():
    return field(default_factory=str)


@dataclass(frozen=True)
class Configuration:
    """Settings for the server, taken from the environment.

    Each field is read from the environment variable of the same name in
    upper case (``smtp_port`` from ``SMTP_PORT``).
    """

    domain: str = _text()
    host: str = _text()
    port: str = _text()
    identity_private_key: str = _text()
    identity_default_password: str = _text()
    session_private_key: str = _text()
    db_connection_string: str = _text()
    smtp_server: str = _text()
    smtp_port: str = _text()
    smtp_username: str = _text()
    smtp_display_from: str = _text()
    smtp_password: str = _text()
    smtp_require_auth: bool = False


def _parse_bool(name: str, text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"environment variable {name} is not a boolean: {text!r}")


def parse_config(environ: Mapping[str, str] | None = None) -> Configuration:
    """Build a :class:`Configuration` from ``environ`` (default: the process environment)."""
    source = os.environ if environ is None else environ
    values = {}
    for spec in fields(Configuration):
        name = spec.name.upper()
        text = source.get(name, "")
        if text == "":
            continue
        values[spec.name] = _parse_bool(name, text) if spec.type == "bool" else text
    return Configuration(**values)


_config = Configuration()


def init_config(debug: bool = False, environ: Mapping[str, str] | None = None) -> Configuration:
    """Load the global configuration.

    In debug mode a ``.env`` file in the working directory is loaded into the
    process environment first, without overriding variables already set.
    """
    global _config
    if debug:
        load_dotenv(os.path.join(os.getcwd(), ".env"))
    _config = parse_config(environ)
    return _config


def get_config() -> Configuration:
    """The configuration loaded by :func:`init_config`."""
    return _config