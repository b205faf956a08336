from __future__ import annotations

import pytest

from depgate_core.properties import parse_properties


def test_parses_separators_and_comments() -> None:
    text = """# comment
! another comment

lib.version=2
lib.filename : lib-2.jar
lib.size 1000
   lib.key = CHK@abc,def
"""
    props = parse_properties(text)
    assert props == {
        "lib.version": "2",
        "lib.filename": "lib-2.jar",
        "lib.size": "1000",
        "lib.key": "CHK@abc,def",
    }
    assert list(props) == ["lib.version", "lib.filename", "lib.size", "lib.key"]


def test_continuation_lines_and_escapes() -> None:
    text = "lib.filename-regex=lib-[0-9]+\\\\.\\\n    jar\nname\\ with\\ space=caf\\u00e9\\tx\n"
    props = parse_properties(text)
    assert props["lib.filename-regex"] == "lib-[0-9]+\\.jar"
    assert props["name with space"] == "caf\u00e9\tx"


def test_later_duplicate_overrides_value() -> None:
    props = parse_properties("a.version=1\nb.version=3\na.version=2\n")
    assert props == {"a.version": "2", "b.version": "3"}
    assert list(props) == ["a.version", "b.version"]


def test_key_without_value() -> None:
    assert parse_properties("lonely\n") == {"lonely": ""}


def test_malformed_unicode_escape_raises() -> None:
    with pytest.raises(ValueError):
        parse_properties("a.b=\\u12G4\n")
