"""
Tests for the placeholder grammar and inline formatting.
"""
import pytest

from registrar.templates.placeholders import (
    format_inline,
    has_placeholder,
    interpolate,
    parse_placeholder,
    whole_placeholder,
)


def lookup_in(data):
    def _lookup(expr):
        if expr.raw in data:
            return True, data[expr.raw]
        return False, None

    return _lookup


class TestParsePlaceholder:
    """Tests for placeholder recognition."""

    def test_valid_path(self):
        """A valid path body parses."""
        assert parse_placeholder("tools.commands[0].c1").raw == "tools.commands[0].c1"

    @pytest.mark.parametrize("body", ["'quoted'", 'say "hi"', "", "a..b", "not a path"])
    def test_not_a_placeholder(self, body):
        """Quotes, empty bodies and invalid paths are not placeholders."""
        assert parse_placeholder(body) is None

    def test_whole_placeholder_with_whitespace(self):
        """Whitespace inside the braces is allowed."""
        assert whole_placeholder("{  version }").raw == "version"

    def test_whole_placeholder_requires_entire_string(self):
        """A placeholder with surrounding text is not whole."""
        assert whole_placeholder("v{version}") is None
        assert whole_placeholder("{a}{b}") is None

    def test_has_placeholder(self):
        """has_placeholder ignores brace text that is not a placeholder."""
        assert has_placeholder("Hello {name}")
        assert not has_placeholder("function() { return 1; }")
        assert not has_placeholder("{'a': 1}")


class TestInterpolate:
    """Tests for inline interpolation."""

    def test_replaces_each_placeholder(self):
        """Every placeholder is replaced by its formatted value."""
        result = interpolate("{name} v{version}", lookup_in({"name": "reg", "version": 2}))
        assert result == "reg v2"

    def test_miss_renders_empty(self):
        """An unresolved placeholder becomes empty text."""
        assert interpolate("a{missing}b", lookup_in({})) == "ab"

    def test_non_placeholders_kept_verbatim(self):
        """Brace text that is not a placeholder is left alone."""
        text = "{'key'} and {} and {a..b}"
        assert interpolate(text, lookup_in({})) == text


class TestFormatInline:
    """Tests for format_inline."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("text", "text"),
            (None, ""),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (1.5, "1.5"),
            (["a", 1], '["a",1]'),
            ({"k": "ü"}, '{"k":"ü"}'),
        ],
    )
    def test_formats(self, value, expected):
        """Values format for text the same way everywhere."""
        assert format_inline(value) == expected
