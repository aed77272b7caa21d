import pytest

from previous.config import ConfigError, Configuration, get_config, init_config, parse_config


def test_parse_reads_named_variables():
    cfg = parse_config({"DOMAIN": "example.com", "PORT": "8080", "HOST": "localhost"})
    assert cfg.domain == "example.com"
    assert cfg.port == "8080"
    assert cfg.host == "localhost"


def test_missing_variables_use_defaults():
    assert parse_config({}) == Configuration()


def test_private_key_field():
    cfg = parse_config({"IDENTITY_PRIVATE_KEY": "placeholder"})
    assert cfg.identity_private_key == "placeholder"


@pytest.mark.parametrize("text,expected", [("true", True), ("1", True), ("F", False), ("False", False)])
def test_bool_parsing(text, expected):
    assert parse_config({"SMTP_REQUIRE_AUTH": text}).smtp_require_auth is expected


def test_invalid_bool_raises():
    with pytest.raises(ConfigError):
        parse_config({"SMTP_REQUIRE_AUTH": "maybe"})


def test_init_config_sets_global():
    cfg = init_config(False, {"DB_CONNECTION_STRING": "file:test.db"})
    assert get_config() == cfg
    assert get_config().db_connection_string == "file:test.db"


def test_debug_loads_dotenv(tmp_path, monkeypatch):
    monkeypatch.setenv("DOMAIN", "unused")
    monkeypatch.delenv("DOMAIN")
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("DOMAIN=example.com\n")
    assert init_config(True).domain == "example.com"


def test_release_ignores_dotenv(tmp_path, monkeypatch):
    monkeypatch.setenv("DOMAIN", "unused")
    monkeypatch.delenv("DOMAIN")
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("DOMAIN=example.com\n")
    assert init_config(False).domain == ""