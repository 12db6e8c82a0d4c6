"""
Document outline for Yggdra LSP.

Collects the definitions of one document (state, functions, services and
their methods, the server with its routes, and the UI element tree) as
LSP document symbols.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from lsprotocol import types

from yggdra.compiler.ast_nodes import (
    ASTNode,
    Condition,
    Loop,
    Program,
    UIElement,
)
from yggdra.compiler.parser import Parser
from yggdra.utils.errors import SourceLocation


class SymbolKind(Enum):
    """Kind of symbol in a Yggdra document."""

    STATE = auto()
    FUNCTION = auto()
    SERVICE = auto()
    METHOD = auto()
    IMPORT = auto()
    LIFECYCLE = auto()
    SERVER = auto()
    ROUTE = auto()
    ELEMENT = auto()


SYMBOL_KIND_TO_LSP: dict[SymbolKind, types.SymbolKind] = {
    SymbolKind.STATE: types.SymbolKind.Variable,
    SymbolKind.FUNCTION: types.SymbolKind.Function,
    SymbolKind.SERVICE: types.SymbolKind.Class,
    SymbolKind.METHOD: types.SymbolKind.Method,
    SymbolKind.IMPORT: types.SymbolKind.Module,
    SymbolKind.LIFECYCLE: types.SymbolKind.Event,
    SymbolKind.SERVER: types.SymbolKind.Module,
    SymbolKind.ROUTE: types.SymbolKind.Method,
    SymbolKind.ELEMENT: types.SymbolKind.Struct,
}


@dataclass
class Symbol:
    """
    A named definition in the source.

    Attributes:
        name: Display name
        kind: The kind of symbol
        detail: Short extra text shown next to the name
        line: 0-indexed line of the definition
        character: 0-indexed column of the definition
        end_character: 0-indexed end column on the same line
        children: Nested symbols (service methods, routes, child elements)
    """

    name: str
    kind: SymbolKind
    detail: Optional[str] = None
    line: int = 0
    character: int = 0
    end_character: int = 0
    children: list["Symbol"] = field(default_factory=list)

    def to_lsp_symbol_kind(self) -> types.SymbolKind:
        return SYMBOL_KIND_TO_LSP.get(self.kind, types.SymbolKind.Variable)

    def to_document_symbol(self) -> types.DocumentSymbol:
        """Convert to LSP DocumentSymbol."""
        range_ = types.Range(
            start=types.Position(line=self.line, character=self.character),
            end=types.Position(
                line=self.line, character=max(self.end_character, self.character + 1)
            ),
        )
        children = [child.to_document_symbol() for child in self.children]
        return types.DocumentSymbol(
            name=self.name,
            kind=self.to_lsp_symbol_kind(),
            range=range_,
            selection_range=range_,
            detail=self.detail,
            children=children if children else None,
        )


class SymbolCollector:
    """Walks a parsed Program and builds the document outline."""

    def __init__(self, source: str) -> None:
        self.lines = source.splitlines()

    def _make(
        self,
        name: str,
        kind: SymbolKind,
        location: Optional[SourceLocation],
        detail: Optional[str] = None,
    ) -> Symbol:
        if location is None:
            return Symbol(name, kind, detail, end_character=len(name))
        line = max(0, location.line - 1)
        character = max(0, location.column - 1)
        text = self.lines[line] if line < len(self.lines) else ""
        return Symbol(name, kind, detail, line, character, len(text.rstrip()))

    def collect(self, program: Program) -> list[Symbol]:
        script = program.script
        symbols: list[Symbol] = []

        for imp in script.imports:
            symbols.append(self._make(imp.alias, SymbolKind.IMPORT, imp.location, imp.source))

        for state in script.state:
            detail = f"{state.type_name} = {state.value}"
            symbols.append(self._make(state.name, SymbolKind.STATE, state.location, detail))

        for fn in script.functions:
            detail = f"({', '.join(fn.parameters)})"
            symbols.append(self._make(fn.name, SymbolKind.FUNCTION, fn.location, detail))

        for service in script.services:
            symbol = self._make(service.name, SymbolKind.SERVICE, service.location, service.base_url)
            for method in service.methods:
                symbol.children.append(
                    self._make(
                        method.name,
                        SymbolKind.METHOD,
                        method.location,
                        f"{method.verb.upper()} {method.path}",
                    )
                )
            symbols.append(symbol)

        if script.lifecycle is not None:
            symbols.append(self._make("onMount", SymbolKind.LIFECYCLE, script.lifecycle.location))

        server = script.server
        if server is not None:
            detail = f"port {server.port}" if server.port else None
            symbol = self._make(server.name, SymbolKind.SERVER, server.location, detail)
            for state in server.state:
                symbol.children.append(
                    self._make(state.name, SymbolKind.STATE, state.location, state.type_name)
                )
            for route in server.routes:
                symbol.children.append(
                    self._make(
                        route.name,
                        SymbolKind.ROUTE,
                        route.location,
                        f"{route.verb.upper()} {route.path}",
                    )
                )
            symbols.append(symbol)

        for child in program.children:
            symbols.extend(self._markup(child))
        return symbols

    def _markup(self, node: ASTNode) -> list[Symbol]:
        # Conditions and loops are transparent; their elements join the parent
        if isinstance(node, UIElement):
            detail = node.explicit_tag
            symbol = self._make(node.element_type, SymbolKind.ELEMENT, node.location, detail)
            for child in node.children:
                symbol.children.extend(self._markup(child))
            return [symbol]
        if isinstance(node, (Condition, Loop)):
            found: list[Symbol] = []
            for child in node.children:
                found.extend(self._markup(child))
            return found
        return []


def get_document_symbols(source: str, uri: str) -> list[types.DocumentSymbol]:
    """
    Parse a document and return its outline.

    Args:
        source: The Yggdra source code
        uri: The document URI, used as the filename

    Returns:
        Top-level document symbols with nested children
    """
    program = Parser(source, uri).parse()
    return [symbol.to_document_symbol() for symbol in SymbolCollector(source).collect(program)]
