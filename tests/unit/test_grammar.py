"""
Unit tests for the element and style tables.
"""

import pytest

from yggdra.compiler.grammar import (
    css_key,
    format_css_value,
    is_style_property,
    resolve_tag,
    to_kebab_case,
)


class TestTags:
    @pytest.mark.parametrize(
        "element,tag",
        [
            ("VBox", "div"),
            ("HBox", "div"),
            ("Text", "span"),
            ("Title", "h1"),
            ("Image", "img"),
            ("Card", "Card"),
        ],
    )
    def test_resolve_tag(self, element, tag):
        assert resolve_tag(element) == tag

    def test_explicit_tag_wins(self):
        assert resolve_tag("VBox", "section") == "section"


class TestStyles:
    def test_kebab_case(self):
        assert to_kebab_case("backgroundColor") == "background-color"
        assert to_kebab_case("color") == "color"

    def test_aliases(self):
        assert css_key("bg") == "background"
        assert css_key("radius") == "border-radius"
        assert css_key("maxWidth") == "max-width"

    def test_style_property(self):
        assert is_style_property("padding")
        assert not is_style_property("placeholder")

    @pytest.mark.parametrize(
        "key,value,expected",
        [
            ("radius", "8", ("border-radius", "8px")),
            ("padding", "1rem", ("padding", "1rem")),
            ("opacity", "0.5", ("opacity", "0.5")),
            ("weight", "700", ("font-weight", "700")),
            ("zIndex", "10", ("z-index", "10")),
            ("color", "red", ("color", "red")),
        ],
    )
    def test_format_css_value(self, key, value, expected):
        assert format_css_value(key, value) == expected
