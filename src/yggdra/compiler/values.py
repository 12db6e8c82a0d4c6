"""
Literal-versus-expression classification for property values.

A property value is static when it is exactly one literal: a single- or
double-quoted string, a number, ``true`` or ``false``. Everything else is an
expression evaluated by the generated component. The decision is made by
scanning the value into expression tokens rather than by sniffing for
operator substrings, so ``"a ? b"`` stays a literal while ``"a" + b`` does
not.
"""

import re
from enum import Enum, auto
from typing import Iterator, Optional

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class ValueTokenKind(Enum):
    STRING = auto()
    TEMPLATE = auto()
    NUMBER = auto()
    IDENTIFIER = auto()
    PUNCT = auto()
    UNTERMINATED = auto()


def scan(text: str) -> Iterator[tuple[ValueTokenKind, str]]:
    """Split an expression into coarse tokens."""
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char.isspace():
            pos += 1
            continue

        if char in "\"'`":
            end = pos + 1
            while end < len(text) and text[end] != char:
                end += 2 if text[end] == "\\" else 1
            if end >= len(text):
                yield ValueTokenKind.UNTERMINATED, text[pos:]
                return
            kind = ValueTokenKind.TEMPLATE if char == "`" else ValueTokenKind.STRING
            yield kind, text[pos:end + 1]
            pos = end + 1
            continue

        match = re.match(r"\d+\.?\d*([eE][+-]?\d+)?|\.\d+", text[pos:])
        if match and (char.isdigit() or char == "."):
            yield ValueTokenKind.NUMBER, match.group(0)
            pos += len(match.group(0))
            continue

        match = re.match(r"[A-Za-z_$][\w$]*", text[pos:])
        if match:
            yield ValueTokenKind.IDENTIFIER, match.group(0)
            pos += len(match.group(0))
            continue

        yield ValueTokenKind.PUNCT, char
        pos += 1


def is_literal(text: str) -> bool:
    """True when ``text`` is exactly one static literal."""
    if NUMBER_RE.match(text):
        return True

    tokens = list(scan(text))
    if len(tokens) != 1:
        return False
    kind, value = tokens[0]
    if kind in (ValueTokenKind.STRING, ValueTokenKind.NUMBER):
        return True
    return kind == ValueTokenKind.IDENTIFIER and value in ("true", "false")


def unquote(text: str) -> str:
    """Strip one pair of matching surrounding quotes, if present."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        return text[1:-1]
    return text


def classify_value(raw: Optional[str]) -> tuple[Optional[str], bool]:
    """
    Classify a raw property value.

    Returns:
        ``(value, is_dynamic)``. Static strings come back unquoted; a missing
        or empty value is a flag and comes back as ``(None, False)``.
    """
    if raw is None or not raw.strip():
        return None, False

    text = raw.strip()
    if is_literal(text):
        return unquote(text), False
    return text, True
