"""
Body statement parser.

Function, lifecycle and route bodies are captured as raw lines by the main
parser and parsed here, once, into a small statement tree. Lines nested
under a statement (deeper indentation) become that statement's body, so
generators never re-derive block structure from indentation.

Route bodies additionally recognise ``return``: with trailing content it is
an inline response, bare ``return`` (or ``return =``) turns every remaining
body line into a literal block::

    return
        - name: "Ada"
          langs:
            - "en"
        - name: "Linus"
"""

import re
from dataclasses import replace
from typing import Optional, Sequence

from yggdra.compiler.ast_nodes import (
    Assignment,
    BodyLine,
    Comment,
    IfBlock,
    ListLiteral,
    LiteralNode,
    ObjectLiteral,
    RawStatement,
    ReturnStatement,
    ScalarLiteral,
    Statement,
)
from yggdra.compiler.lexer import find_unquoted, strip_comment
from yggdra.compiler.values import unquote
from yggdra.utils.diagnostics import DiagnosticEmitter, ErrorCode, SourceSpan
from yggdra.utils.errors import SourceLocation

_IF_RE = re.compile(r"^if\s+(?!\()(.+)$")
_ASSIGN_RE = re.compile(r"^([A-Za-z_$][\w$]*)\s*=(?!=)\s*(.+)$")
_RETURN_RE = re.compile(r"^return\b(.*)$")

# (indent, text, origin line)
_Entry = tuple[int, str, BodyLine]


class LiteralBlockParser:
    """
    Parses the indented list/object description following a bare ``return``.

    Lines starting with ``-`` are list items; anything else is a
    ``key: value`` pair split on the first colon outside quotes. A key with
    no value followed by deeper lines nests a block. Lines that fit neither
    shape are reported as E0204 and skipped.
    """

    def __init__(
        self,
        emitter: Optional[DiagnosticEmitter] = None,
        filename: Optional[str] = None,
    ) -> None:
        self.emitter = emitter
        self.filename = filename

    def parse(self, lines: Sequence[BodyLine]) -> LiteralNode:
        entries: list[_Entry] = []
        for line in lines:
            if line.text.startswith("#"):
                continue
            text = strip_comment(line.text)
            if text:
                entries.append((line.indent, text, line))
        return self._parse(entries)

    def _parse(self, entries: list[_Entry]) -> LiteralNode:
        if not entries:
            return ScalarLiteral("null")
        if entries[0][1].startswith("-"):
            return self._parse_list(entries)
        return self._parse_object(entries)

    def _parse_list(self, entries: list[_Entry]) -> ListLiteral:
        base = entries[0][0]
        groups: list[list[_Entry]] = []
        for entry in entries:
            indent, text, line = entry
            if indent <= base:
                if text.startswith("-"):
                    groups.append([entry])
                else:
                    self._report(line, "expected a '- item' line in list block")
                continue
            groups[-1].append(entry)

        return ListLiteral(tuple(self._parse_item(group) for group in groups))

    def _parse_item(self, group: list[_Entry]) -> LiteralNode:
        indent, text, line = group[0]
        content = text[1:].strip()
        rest = group[1:]

        if not content:
            return self._parse(rest)

        if find_unquoted(content, ":") < 0:
            for _, _, nested in rest:
                self._report(nested, "unexpected indented line after scalar list item")
            return ScalarLiteral(content)

        # "- key: value" opens an object whose further keys line up below it
        head_indent = min((entry[0] for entry in rest), default=indent + 2)
        return self._parse([(head_indent, content, line), *rest])

    def _parse_object(self, entries: list[_Entry]) -> ObjectLiteral:
        pairs: list[tuple[str, LiteralNode]] = []
        i = 0
        while i < len(entries):
            indent, text, line = entries[i]
            i += 1
            nested: list[_Entry] = []
            while i < len(entries) and entries[i][0] > indent:
                nested.append(entries[i])
                i += 1

            colon = find_unquoted(text, ":")
            key = text[:colon].strip() if colon >= 0 else ""
            if text.startswith("-") or not key:
                self._report(line, "expected 'key: value' in object block")
                continue

            value = text[colon + 1:].strip()
            if value:
                for _, _, extra in nested:
                    self._report(extra, f"unexpected indented line under '{key}'")
                pairs.append((unquote(key), ScalarLiteral(value)))
            else:
                pairs.append((unquote(key), self._parse(nested)))

        return ObjectLiteral(tuple(pairs))

    def _report(self, line: BodyLine, message: str) -> None:
        if self.emitter is None:
            return
        span = SourceSpan.for_line(line.line, line.raw, self.filename)
        self.emitter.error(ErrorCode.E0204, message, span, line.text).emit()


class StatementParser:
    """
    Parses one captured body.

    Usage:
        statements = StatementParser(fn.body).parse()
        statements = StatementParser(route.body, route=True, emitter=emitter).parse()
    """

    def __init__(
        self,
        lines: Sequence[BodyLine],
        *,
        route: bool = False,
        emitter: Optional[DiagnosticEmitter] = None,
        filename: Optional[str] = None,
    ) -> None:
        self.lines = list(lines)
        self.route = route
        self.emitter = emitter
        self.filename = filename
        self.pos = 0

    def parse(self) -> tuple[Statement, ...]:
        self.pos = 0
        return self._parse_block(-1)

    def _parse_block(self, floor: int) -> tuple[Statement, ...]:
        statements: list[Statement] = []
        while self.pos < len(self.lines):
            line = self.lines[self.pos]
            if line.indent <= floor:
                break
            self.pos += 1
            location = SourceLocation(line.line, line.indent + 1, self.filename)

            if line.text.startswith("#"):
                statements.append(Comment(line.text[1:].strip(), location))
                continue

            text = strip_comment(line.text)
            if self.route:
                match = _RETURN_RE.match(text)
                if match:
                    statements.append(self._parse_return(match.group(1), location))
                    continue

            body = self._parse_block(line.indent)
            if self.route:
                statements.append(RawStatement(text, body, location))
                continue

            previous = statements[-1] if statements else None
            if text == "else" and isinstance(previous, IfBlock) and not previous.orelse:
                statements[-1] = replace(previous, orelse=body)
                continue

            match = _IF_RE.match(text)
            if match and not text.endswith("{"):
                statements.append(IfBlock(match.group(1).strip(), body, (), location))
                continue

            match = _ASSIGN_RE.match(text)
            if match:
                target, value = match.group(1), match.group(2).strip()
                statements.append(Assignment(target, value, body, location))
                continue

            statements.append(RawStatement(text, body, location))

        return tuple(statements)

    def _parse_return(self, rest: str, location: SourceLocation) -> ReturnStatement:
        rest = rest.strip()
        if rest.startswith("=") and not rest.startswith("=="):
            rest = rest[1:].strip()
        rest = rest.rstrip(";").strip()
        if rest:
            return ReturnStatement(value=rest, location=location)

        block_lines = self.lines[self.pos:]
        self.pos = len(self.lines)
        block = LiteralBlockParser(self.emitter, self.filename).parse(block_lines)
        return ReturnStatement(block=block, location=location)


def parse_statements(
    lines: Sequence[BodyLine],
    *,
    route: bool = False,
    emitter: Optional[DiagnosticEmitter] = None,
    filename: Optional[str] = None,
) -> tuple[Statement, ...]:
    """Parse a captured body into statements."""
    return StatementParser(lines, route=route, emitter=emitter, filename=filename).parse()


def has_top_level_return(statements: Sequence[Statement]) -> bool:
    return any(isinstance(statement, ReturnStatement) for statement in statements)
