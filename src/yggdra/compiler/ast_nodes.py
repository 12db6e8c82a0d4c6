"""
Abstract Syntax Tree (AST) node definitions for Yggdra.

This module defines the node types produced by the parser. Every node is an
immutable dataclass; sequences are tuples. The tree has three layers:

- UI nodes (elements, pseudo-classes, conditions, loops) forming the
  markup tree walked by the UI generator through the visitor pattern
- declarations (state, functions, services, imports, lifecycle hook,
  server definition) collected in the program's script block
- body statements and literal trees, parsed once from the raw lines of
  function, lifecycle and route bodies
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, Optional, Union

from yggdra.utils.errors import SourceLocation

if TYPE_CHECKING:
    from yggdra.utils.diagnostics import Diagnostic


class ASTNode(ABC):
    """Base class for nodes of the markup tree."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for markup tree traversal.

    Implement the ``visit_*`` methods for the node types you care about.
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Raw Bodies
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BodyLine:
    """A captured physical line of a function, service, lifecycle or route body."""

    line: int
    indent: int
    raw: str

    @property
    def text(self) -> str:
        return self.raw.strip()


# -----------------------------------------------------------------------------
# Literal Trees (route return blocks)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScalarLiteral:
    """A value emitted verbatim: ``"pong"``, ``42``, ``users.length``."""

    text: str


@dataclass(frozen=True, slots=True)
class ListLiteral:
    items: tuple["LiteralNode", ...]


@dataclass(frozen=True, slots=True)
class ObjectLiteral:
    entries: tuple[tuple[str, "LiteralNode"], ...]


LiteralNode = Union[ScalarLiteral, ListLiteral, ObjectLiteral]


# -----------------------------------------------------------------------------
# Body Statements
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Comment:
    """A ``#`` comment line inside a body."""

    text: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class RawStatement:
    """
    A line passed through to the target language.

    Lines nested under it (deeper indentation) are kept as its body so the
    generator can re-indent them.
    """

    text: str
    body: tuple["Statement", ...] = ()
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Assignment:
    """``name = expr`` with a bare identifier target."""

    target: str
    value: str
    body: tuple["Statement", ...] = ()
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class IfBlock:
    """
    ``if expr`` without parentheses, closed by indentation.

    Example:
        if count > 3
            reset()
        else
            count = count + 1
    """

    condition: str
    body: tuple["Statement", ...]
    orelse: tuple["Statement", ...] = ()
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class ReturnStatement:
    """
    A route ``return``: either an inline expression or a literal block.

    Exactly one of ``value`` and ``block`` is set.
    """

    value: Optional[str] = None
    block: Optional[LiteralNode] = None
    location: Optional[SourceLocation] = None


Statement = Union[Comment, RawStatement, Assignment, IfBlock, ReturnStatement]


# -----------------------------------------------------------------------------
# Declarations
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StateDeclaration:
    """``state [type] name = value``; the type defaults to ``any``."""

    type_name: str
    name: str
    value: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    name: str
    parameters: tuple[str, ...]
    body: tuple[BodyLine, ...]
    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class ServiceMethod:
    """
    One client method of a service, from a line like
    ``get getUser /users/:id ?fields``.
    """

    verb: str
    name: str
    path: str
    path_params: tuple[str, ...]
    smart_params: tuple[str, ...]
    location: Optional[SourceLocation] = None

    @property
    def parameters(self) -> tuple[str, ...]:
        return (*self.path_params, *self.smart_params)


@dataclass(frozen=True, slots=True)
class ServiceDeclaration:
    name: str
    base_url: str
    body: tuple[BodyLine, ...]
    methods: tuple[ServiceMethod, ...]
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class LifecycleHook:
    """The ``onMount`` block."""

    body: tuple[BodyLine, ...]
    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    """``use Source as alias``."""

    source: str
    alias: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Route:
    """
    One HTTP endpoint of a server definition.

    Example:
        get user /users/:id ?verbose
            return db[id]
    """

    verb: str
    name: str
    path: str
    path_params: tuple[str, ...]
    smart_params: tuple[str, ...]
    body: tuple[BodyLine, ...]
    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class ServerDefinition:
    name: str
    port: Optional[str]
    state: tuple[StateDeclaration, ...]
    routes: tuple[Route, ...]
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Script:
    """Everything declared outside the markup tree."""

    state: tuple[StateDeclaration, ...] = ()
    functions: tuple[FunctionDeclaration, ...] = ()
    services: tuple[ServiceDeclaration, ...] = ()
    imports: tuple[ImportDeclaration, ...] = ()
    lifecycle: Optional[LifecycleHook] = None
    server: Optional[ServerDefinition] = None


# -----------------------------------------------------------------------------
# Markup Tree
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Property:
    """
    ``.key: value`` on an element, pseudo-class or loop.

    ``value`` is None for a bare ``.key`` flag. Static string values are
    stored unquoted.
    """

    key: str
    value: Optional[str]
    is_dynamic: bool
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class UIElement(ASTNode):
    element_type: str
    explicit_tag: Optional[str]
    properties: tuple[Property, ...]
    children: tuple[ASTNode, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_ui_element(self)


@dataclass(frozen=True, slots=True)
class PseudoClass(ASTNode):
    """``&hover`` style block; carries styles only."""

    selector: str
    properties: tuple[Property, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_pseudo_class(self)


@dataclass(frozen=True, slots=True)
class Condition(ASTNode):
    """An ``if expr`` or ``else`` branch wrapping a subtree."""

    branch: str
    expression: Optional[str]
    children: tuple[ASTNode, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_condition(self)


@dataclass(frozen=True, slots=True)
class Loop(ASTNode):
    """
    ``loop item in items`` or ``loop item, idx in items``.

    ``index`` is None for the single-binding form; ``key`` holds an explicit
    ``.key:`` expression.
    """

    item: str
    index: Optional[str]
    collection: str
    key: Optional[str]
    children: tuple[ASTNode, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_loop(self)


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """Root of one source file."""

    children: tuple[ASTNode, ...]
    script: Script
    diagnostics: tuple["Diagnostic", ...] = ()
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)

    @property
    def server(self) -> Optional[ServerDefinition]:
        return self.script.server


def iter_nodes(node: ASTNode, depth: int = 0) -> Iterator[tuple[ASTNode, int]]:
    """Yield ``(node, depth)`` for a markup subtree, depth-first."""
    yield node, depth
    for child in getattr(node, "children", ()):
        yield from iter_nodes(child, depth + 1)
