"""
Yggdra Lexer (line tokenizer).

First phase of the parser: turns source text into one LineToken per
non-blank physical line. Classification here is purely lexical; whether a
token is legal where it appears (a route outside a server, a property with
no element) is decided by the parser.
"""

import re
from typing import Iterator, Optional

from yggdra.compiler.tokens import KEYWORD_LEADERS, ROUTE_VERBS, LineKind, LineToken

_ROUTE_RE = re.compile(rf"^({'|'.join(ROUTE_VERBS)})\s+(.*)$")
_WORD_RE = re.compile(r"^(\w+)\s+(.*)$")
_QUOTES = "\"'`"


def find_unquoted(text: str, target: str) -> int:
    """
    Index of the first ``target`` character outside quotes, or -1.

    Quotes only close on the same character that opened them, so
    ``"it's #1"`` is a single quoted run.
    """
    quote: Optional[str] = None
    for i, char in enumerate(text):
        if char in _QUOTES:
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        elif char == target and quote is None:
            return i
    return -1


def strip_comment(text: Optional[str]) -> str:
    """Remove a trailing ``#`` comment, ignoring ``#`` inside quotes."""
    if not text:
        return ""

    index = find_unquoted(text, "#")
    if index >= 0:
        text = text[:index]
    return text.strip()


def measure_indent(raw: str) -> int:
    """Count leading whitespace characters of a physical line."""
    return len(raw) - len(raw.lstrip())


class Lexer:
    """
    Line tokenizer for Yggdra source code.

    Usage:
        lexer = Lexer(source_code, "App.ygg")
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        self.source = source
        self.filename = filename
        self.tokens: list[LineToken] = []

    def tokenize(self) -> list[LineToken]:
        """Classify every non-blank line of the source."""
        self.tokens = [
            self._classify(number, raw)
            for number, raw in enumerate(self.source.splitlines(), start=1)
            if raw.strip()
        ]
        return self.tokens

    def __iter__(self) -> Iterator[LineToken]:
        return iter(self.tokenize())

    def _classify(self, number: int, raw: str) -> LineToken:
        indent = measure_indent(raw)
        stripped = raw.strip()

        def token(kind: LineKind, leader: str, text: str) -> LineToken:
            return LineToken(number, indent, kind, leader, text, raw)

        if stripped.startswith("#"):
            return token(LineKind.COMMENT, "#", stripped[1:].strip())

        content = strip_comment(stripped)

        word = _WORD_RE.match(content)
        if word and word.group(1) in KEYWORD_LEADERS:
            leader = word.group(1)
            return token(KEYWORD_LEADERS[leader], leader, word.group(2).strip())

        route = _ROUTE_RE.match(content)
        if route:
            return token(LineKind.ROUTE, route.group(1), route.group(2).strip())

        if content.startswith("."):
            return token(LineKind.PROPERTY, ".", content[1:])
        if content.startswith("&"):
            return token(LineKind.PSEUDO, "&", content[1:].strip())
        if content == "else":
            return token(LineKind.ELSE, "else", "")
        if content.startswith("onMount"):
            return token(LineKind.ON_MOUNT, "onMount", content[len("onMount"):].strip())
        if "A" <= content[:1] <= "Z":
            return token(LineKind.ELEMENT, "", content)

        return token(LineKind.UNKNOWN, "", content)
