"""
Structured output builder.

Generators describe their output as markup elements, style rules and
literal trees; this module is the only place that turns them into text, so
quoting and escaping live in one spot:

- static text and attribute values are HTML-escaped
- expressions inside attributes have their double quotes swapped for single
  quotes so they cannot terminate the attribute
- JavaScript strings are single-quoted with backslash escapes
"""

import html
import json
from dataclasses import dataclass, field
from typing import Optional, Union

from yggdra.compiler.ast_nodes import ListLiteral, LiteralNode, ObjectLiteral, ScalarLiteral
from yggdra.compiler.values import IDENTIFIER_RE

INDENT = "  "


# =============================================================================
# Escaping
# =============================================================================


def escape_text(text: str) -> str:
    return html.escape(text, quote=False)


def escape_attribute(value: str) -> str:
    return html.escape(value, quote=True)


def attribute_expression(expr: str) -> str:
    """Make a JavaScript expression safe inside a double-quoted attribute."""
    return expr.replace('"', "'")


def js_string(text: str) -> str:
    """Single-quoted JavaScript string literal."""
    escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def js_template_text(text: str) -> str:
    """Escape the literal parts of a template string."""
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def js_key(key: str) -> str:
    """Object key, bare when it is a valid identifier."""
    return key if IDENTIFIER_RE.match(key) else json.dumps(key)


# =============================================================================
# Markup Tree
# =============================================================================


@dataclass(slots=True)
class Attribute:
    """
    One attribute; ``value`` None renders a bare flag.

    ``name`` carries any binding prefix (``:src``, ``@click``, ``v-model``).
    """

    name: str
    value: Optional[str] = None
    is_expression: bool = False

    def render(self) -> str:
        if self.value is None:
            return self.name
        if self.is_expression:
            return f'{self.name}="{attribute_expression(self.value)}"'
        return f'{self.name}="{escape_attribute(self.value)}"'


@dataclass(slots=True)
class TextNode:
    text: str
    is_expression: bool = False

    def render(self) -> str:
        if self.is_expression:
            return f"{{{{ {self.text} }}}}"
        return escape_text(self.text)


@dataclass(slots=True)
class MarkupElement:
    tag: str
    attributes: list[Attribute] = field(default_factory=list)
    children: list[Union["MarkupElement", TextNode]] = field(default_factory=list)
    self_closing: bool = False

    def open_tag(self) -> str:
        parts = [self.tag, *(attribute.render() for attribute in self.attributes)]
        if self.self_closing:
            return f"<{' '.join(parts)} />"
        return f"<{' '.join(parts)}>"


MarkupNode = Union[MarkupElement, TextNode]


def render_markup(node: MarkupNode, depth: int = 0) -> list[str]:
    """Serialise a markup node to lines, two spaces per depth."""
    pad = INDENT * depth
    if isinstance(node, TextNode):
        return [pad + node.render()]

    if node.self_closing:
        return [pad + node.open_tag()]

    close = f"</{node.tag}>"
    if all(isinstance(child, TextNode) for child in node.children):
        inner = "".join(child.render() for child in node.children)
        return [f"{pad}{node.open_tag()}{inner}{close}"]

    lines = [pad + node.open_tag()]
    for child in node.children:
        lines.extend(render_markup(child, depth + 1))
    lines.append(pad + close)
    return lines


# =============================================================================
# Style Rules
# =============================================================================


@dataclass(slots=True)
class StyleRule:
    selector: str
    declarations: list[tuple[str, str]] = field(default_factory=list)

    def render(self) -> str:
        body = "".join(f"{INDENT}{name}: {value};\n" for name, value in self.declarations)
        return f"{self.selector} {{\n{body}}}"


def render_style_map(entries: list[tuple[str, str]]) -> str:
    """Inline ``:style`` object for dynamic declarations."""
    items = ", ".join(f"{js_string(name)}: {expr}" for name, expr in entries)
    return f"{{ {items} }}"


# =============================================================================
# Literal Trees
# =============================================================================


def render_literal(node: LiteralNode) -> str:
    """Serialise a literal tree as a single-line JavaScript literal."""
    if isinstance(node, ScalarLiteral):
        return node.text
    if isinstance(node, ListLiteral):
        return "[" + ", ".join(render_literal(item) for item in node.items) + "]"
    if isinstance(node, ObjectLiteral):
        if not node.entries:
            return "{}"
        items = ", ".join(f"{js_key(key)}: {render_literal(value)}" for key, value in node.entries)
        return f"{{ {items} }}"
    raise TypeError(f"Unknown literal node: {type(node).__name__}")


def css_binding(expr: str) -> str:
    """Reference a component expression from a style rule."""
    if IDENTIFIER_RE.match(expr):
        return f"v-bind({expr})"
    swapped = expr.replace("'", '"')
    return f"v-bind('{swapped}')"


# =============================================================================
# Line Writer
# =============================================================================


class CodeWriter:
    """Collects generated lines at the current indentation level."""

    def __init__(self, indent_size: int = 2) -> None:
        self.indent_size = indent_size
        self._level = 0
        self._lines: list[str] = []

    def emit(self, text: str = "") -> None:
        """Emit a line of code with current indentation."""
        if text:
            self._lines.append(" " * (self._level * self.indent_size) + text)
        else:
            self._lines.append("")

    def indent(self) -> None:
        self._level += 1

    def dedent(self) -> None:
        self._level = max(0, self._level - 1)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def getvalue(self) -> str:
        return "\n".join(self._lines)
