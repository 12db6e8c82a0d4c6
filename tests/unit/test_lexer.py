"""
Unit tests for the Yggdra line Lexer.
"""

import pytest

from yggdra.compiler.lexer import Lexer, find_unquoted, measure_indent, strip_comment
from yggdra.compiler.tokens import LineKind


class TestLineClassification:
    """Every non-blank line is classified by its leader."""

    @pytest.mark.parametrize(
        "line,kind,leader,text",
        [
            ('state string msg = "Hi"', LineKind.STATE, "state", 'string msg = "Hi"'),
            ("fn inc(step)", LineKind.FN, "fn", "inc(step)"),
            ("server Api: 4000", LineKind.SERVER, "server", "Api: 4000"),
            ("get ping /ping", LineKind.ROUTE, "get", "ping /ping"),
            ("delete drop /users/:id", LineKind.ROUTE, "delete", "drop /users/:id"),
            (".content: msg", LineKind.PROPERTY, ".", "content: msg"),
            ("&hover", LineKind.PSEUDO, "&", "hover"),
            ("if loggedIn", LineKind.IF, "if", "loggedIn"),
            ("else", LineKind.ELSE, "else", ""),
            ("loop item in items", LineKind.LOOP, "loop", "item in items"),
            ('service Api: "http://x"', LineKind.SERVICE, "service", 'Api: "http://x"'),
            ("use axios as http", LineKind.USE, "use", "axios as http"),
            ("onMount", LineKind.ON_MOUNT, "onMount", ""),
            ("VBox", LineKind.ELEMENT, "", "VBox"),
        ],
    )
    def test_leaders(self, tokenize, line, kind, leader, text):
        """Each leader maps to its line kind."""
        [token] = tokenize(line)
        assert token.kind == kind
        assert token.leader == leader
        assert token.text == text

    def test_comment_line(self, tokenize):
        [token] = tokenize("# a note")
        assert token.kind == LineKind.COMMENT
        assert token.text == "a note"

    def test_unknown_line(self, tokenize):
        """Lowercase lines with no known leader are unknown."""
        [token] = tokenize("stat x = 1")
        assert token.kind == LineKind.UNKNOWN
        assert token.content == "stat x = 1"

    def test_verb_prefix_is_not_a_route(self, tokenize):
        """'getter' must not be read as a GET route."""
        [token] = tokenize("getter x")
        assert token.kind == LineKind.UNKNOWN

    def test_keyword_needs_separator(self, tokenize):
        """'iffy' is not an if line."""
        [token] = tokenize("iffy thing")
        assert token.kind == LineKind.UNKNOWN


class TestLinePositions:
    """Line numbers and indentation."""

    def test_blank_lines_skipped_numbers_kept(self):
        tokens = Lexer("VBox\n\n   \n  Text\n").tokenize()
        assert [t.line for t in tokens] == [1, 4]

    def test_indent_counts_characters(self):
        tokens = Lexer("VBox\n    Text\n\tButton\n").tokenize()
        assert [t.indent for t in tokens] == [0, 4, 1]

    def test_raw_line_preserved(self):
        [_, token] = Lexer("VBox\n    Text  # note\n").tokenize()
        assert token.raw == "    Text  # note"
        assert token.text == "Text"

    def test_iteration(self):
        lexer = Lexer("VBox\n  Text\n")
        assert [t.kind for t in lexer] == [LineKind.ELEMENT, LineKind.ELEMENT]


class TestComments:
    """Trailing comments and quoting."""

    def test_trailing_comment_stripped(self, tokenize):
        [token] = tokenize('.color: "#fff" # brand colour')
        assert token.text == 'color: "#fff"'

    def test_hash_inside_single_quotes(self):
        assert strip_comment("x = 'a#b' # c") == "x = 'a#b'"

    def test_mixed_quotes(self):
        """A quote only closes on the character that opened it."""
        assert find_unquoted("\"it's #1\" # c", "#") == 10

    def test_find_unquoted_missing(self):
        assert find_unquoted('"a:b"', ":") == -1

    def test_strip_comment_empty(self):
        assert strip_comment(None) == ""
        assert strip_comment("") == ""

    def test_measure_indent(self):
        assert measure_indent("      x") == 6
        assert measure_indent("x") == 0
