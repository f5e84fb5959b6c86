"""
Tests for the properties parser.

Tests key parsing features including:
- Separators, comments, continuation lines and sections
- Typed values and multi-value splitting
- ${variable} substitution and escapes
- Includes (relative, missing, circular, too deep)
- Key conflicts and malformed lines
"""

from pathlib import Path

import pytest

from srvkit.config import (
    PropertiesLoader,
    convert_value,
    load_properties,
    parse_properties,
    split_multi_value,
)
from srvkit.exceptions import ConfigError

# =============================================================================
# Syntax
# =============================================================================


@pytest.mark.unit
class TestSyntax:
    def test_separators(self):
        data = parse_properties("a = 1\nb: two\nc three\nd=")
        assert data == {"a": 1, "b": "two", "c": "three", "d": ""}

    def test_comments_and_blank_lines(self):
        data = parse_properties("# comment\n! also comment\n\n  key = value  \n")
        assert data == {"key": "value"}

    def test_dotted_keys_nest(self):
        data = parse_properties("server.http.port = 8080\nserver.http.disabled = false")
        assert data == {"server": {"http": {"port": 8080, "disabled": False}}}

    def test_continuation_lines(self):
        data = parse_properties("modules = Session,\\\n    Static,\\\n    JSON\n")
        assert data == {"modules": ["Session", "Static", "JSON"]}

    def test_escaped_backslash_is_not_continuation(self):
        data = parse_properties("path = C:\\\\\nnext = 1")
        assert data == {"path": "C:\\", "next": 1}

    def test_sections(self):
        text = "[server.http]\nport = 80\n[server.https]\nport = 443\n[]\ntop = x\n"
        data = parse_properties(text)
        assert data["server"]["http"]["port"] == 80
        assert data["server"]["https"]["port"] == 443
        assert data["top"] == "x"

    def test_escapes(self):
        data = parse_properties("tab = a\\tb\nuni = \\u00e9\nkey\\ with\\ space = v")
        assert data["tab"] == "a\tb"
        assert data["uni"] == "\u00e9"
        assert data["key with space"] == "v"

    def test_later_value_wins(self):
        assert parse_properties("a = 1\na = 2") == {"a": 2}


# =============================================================================
# Values
# =============================================================================


@pytest.mark.unit
class TestValues:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("true", True),
            ("false", False),
            ("null", None),
            ("42", 42),
            ("-7", -7),
            ("0", 0),
            ("3.5", 3.5),
            ("007", "007"),
            ("True", "True"),
            ("hello", "hello"),
            ("a,b", ["a", "b"]),
        ],
    )
    def test_convert_value(self, text, expected):
        assert convert_value(text) == expected

    def test_split_multi_value(self):
        assert split_multi_value("Session, Static ,JSON") == ["Session", "Static", "JSON"]
        assert split_multi_value("Session") == "Session"
        assert split_multi_value(5) == 5

    def test_trailing_comma_yields_empty_entry(self):
        assert parse_properties("modules = Session,,Static,")["modules"] == [
            "Session",
            "",
            "Static",
            "",
        ]


# =============================================================================
# Variables
# =============================================================================


@pytest.mark.unit
class TestVariables:
    def test_substitution(self):
        data = parse_properties("host = example.com\nurl = http://${host}:8080/")
        assert data["url"] == "http://example.com:8080/"

    def test_dotted_variable(self):
        data = parse_properties("server.http.port = 8080\nport.copy = ${server.http.port}")
        assert data["port"]["copy"] == 8080

    def test_list_variable_rejoins(self):
        data = parse_properties("a = x,y\nb = ${a}")
        assert data["b"] == ["x", "y"]

    def test_unknown_variable(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_properties("url = ${missing}")
        assert "Invalid line" in exc_info.value.message
        assert "missing" in str(exc_info.value.cause)
        assert exc_info.value.context["line"] == 1

    def test_escaped_dollar(self):
        assert parse_properties("price = \\${notvar}")["price"] == "${notvar}"

    def test_namespace_variable_rejected(self):
        with pytest.raises(ConfigError):
            parse_properties("a.b = 1\nc = ${a}")


# =============================================================================
# Includes
# =============================================================================


@pytest.mark.unit
class TestIncludes:
    def test_relative_include(self, temp_dir: Path):
        (temp_dir / "common.properties").write_text("shared = yes\nport = 1\n")
        main = temp_dir / "main.properties"
        main.write_text("include = common.properties\nport = 2\n")
        loader = PropertiesLoader()
        data = loader.load(main)
        assert data == {"shared": "yes", "port": 2}
        assert loader.source_files == [main.resolve(), (temp_dir / "common.properties").resolve()]

    def test_variables_from_included_file(self, temp_dir: Path):
        (temp_dir / "base.properties").write_text("host = db.local\n")
        main = temp_dir / "main.properties"
        main.write_text("include = base.properties\ndsn = pg://${host}\n")
        assert load_properties(main)["dsn"] == "pg://db.local"

    def test_multiple_includes(self, temp_dir: Path):
        (temp_dir / "a.properties").write_text("a = 1\n")
        (temp_dir / "b.properties").write_text("b = 2\n")
        main = temp_dir / "main.properties"
        main.write_text("include = a.properties, b.properties\n")
        assert load_properties(main) == {"a": 1, "b": 2}

    def test_missing_include(self, temp_dir: Path):
        main = temp_dir / "main.properties"
        main.write_text("include = nope.properties\n")
        with pytest.raises(ConfigError, match="Include file not found"):
            load_properties(main)

    def test_circular_include(self, temp_dir: Path):
        (temp_dir / "a.properties").write_text("include = b.properties\n")
        (temp_dir / "b.properties").write_text("include = a.properties\n")
        with pytest.raises(ConfigError, match="Circular include"):
            load_properties(temp_dir / "a.properties")

    def test_depth_limit(self, temp_dir: Path):
        for i in range(4):
            (temp_dir / f"f{i}.properties").write_text(f"include = f{i + 1}.properties\n")
        (temp_dir / "f4.properties").write_text("end = 1\n")
        with pytest.raises(ConfigError, match="Include depth"):
            PropertiesLoader(max_depth=2).load(temp_dir / "f0.properties")
        assert PropertiesLoader(max_depth=10).load(temp_dir / "f0.properties") == {"end": 1}


# =============================================================================
# Errors
# =============================================================================


@pytest.mark.unit
class TestErrors:
    def test_value_then_namespace(self):
        with pytest.raises(ConfigError, match="conflicts"):
            parse_properties("a = 1\na.b = 2")

    def test_namespace_then_value(self):
        with pytest.raises(ConfigError, match="conflicts with namespace"):
            parse_properties("a.b = 1\na = 2")

    def test_empty_key_segment(self):
        with pytest.raises(ConfigError, match="Invalid key"):
            parse_properties("a..b = 1")

    def test_malformed_unicode_escape(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_properties("ok = 1\nbad = \\u12")
        assert exc_info.value.context["line"] == 2
