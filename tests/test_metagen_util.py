import pytest

from previous.metagen_util import (
    UnknownNoteError,
    parse_notes,
    parse_sqlite_filename,
    print_status,
)


def test_print_status_success(capsys):
    print_status(True)
    assert capsys.readouterr().out == "... SUCCESS\n"


def test_print_status_failed(capsys):
    print_status(False)
    assert capsys.readouterr().out == "... FAILED\n"


@pytest.mark.parametrize("dsn", ["example.db", "./data/app.db", "/var/lib/app.db"])
def test_plain_paths_pass_through(dsn):
    assert parse_sqlite_filename(dsn) == dsn


def test_plain_path_query_is_dropped():
    assert parse_sqlite_filename("example.db?_fk=1") == "example.db"


@pytest.mark.parametrize("dsn", ["file:test.db", "file:test.db?cache=shared", "FILE:test.db"])
def test_file_uri_gives_opaque_part(dsn):
    assert parse_sqlite_filename(dsn) == "test.db"


def test_file_uri_with_slashes_has_no_opaque_part():
    assert parse_sqlite_filename("file:///abs/x.db") == ""


def test_plain_path_is_unescaped():
    assert parse_sqlite_filename("my%20data.db") == "my data.db"


def test_other_scheme_rejected():
    with pytest.raises(ValueError, match="invalid DSN format"):
        parse_sqlite_filename("sqlite3://x.db")


def test_bad_escape_rejected():
    with pytest.raises(ValueError, match="invalid URL escape"):
        parse_sqlite_filename("bad%zz.db")


def test_missing_scheme_rejected():
    with pytest.raises(ValueError, match="missing protocol scheme"):
        parse_sqlite_filename(":x.db")


def test_parse_notes_marks_found_notes():
    result = parse_notes("Handler for pages.\n@Public", "Index", "index.py", ["Public", "Admin"])
    assert result == {"Public": True, "Admin": False}


def test_parse_notes_without_doc():
    assert parse_notes(None, "Index", "index.py", ["Public"]) == {"Public": False}


def test_parse_notes_unknown_note():
    with pytest.raises(UnknownNoteError) as info:
        parse_notes("@Public @Bogus", "Index", "index.py", ["Public", "Admin"])
    assert info.value.note == "Bogus"
    assert info.value.identifier == "Index"
    assert "Unknown note `@Bogus`" in str(info.value)
    assert "[Public Admin]" in str(info.value)