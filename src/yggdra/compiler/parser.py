"""
Yggdra Parser.

An indentation-stack parser that turns the lexer's line tokens into an
immutable Program. Nesting comes solely from leading whitespace: a line's
children are the following lines that are indented deeper, up to the first
line at or above its own indentation.

The parser never raises on malformed input. Every line it cannot use is
reported as a diagnostic and pushes nothing; the lines after it are
classified against the ancestor stack as usual.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from yggdra.compiler.ast_nodes import (
    ASTNode,
    BodyLine,
    Condition,
    FunctionDeclaration,
    ImportDeclaration,
    LifecycleHook,
    Loop,
    Program,
    Property,
    PseudoClass,
    Route,
    Script,
    ServerDefinition,
    ServiceDeclaration,
    ServiceMethod,
    StateDeclaration,
    UIElement,
)
from yggdra.compiler.lexer import Lexer, strip_comment
from yggdra.compiler.statements import parse_statements
from yggdra.compiler.tokens import ALL_LEADERS, ROUTE_VERBS, LineKind, LineToken
from yggdra.compiler.values import classify_value
from yggdra.utils.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    ErrorCode,
    SourceSpan,
    suggest_similar,
)
from yggdra.utils.errors import SourceLocation

_NAME = r"[A-Za-z_$][\w$]*"

_STATE_RE = re.compile(rf"^(?:(\w+)\s+)?({_NAME})\s*=\s*(.+)$")
_FN_RE = re.compile(rf"^({_NAME})\s*\((.*)\)\s*:?$")
_SERVICE_RE = re.compile(rf"^({_NAME})\s*:\s*(.+)$")
_SERVER_RE = re.compile(rf"^({_NAME})\s*(?::\s*(.*))?$")
_USE_RE = re.compile(rf"^({_NAME}(?:\.{_NAME})*)\s+as\s+({_NAME})$")
_LOOP_RE = re.compile(r"^(.+?)\s+in\s+(.+)$")
_NAME_RE = re.compile(rf"^{_NAME}$")
_SMART_PARAM_RE = re.compile(rf"^\?({_NAME})$")
_PATH_PARAM_RE = re.compile(r":(\w+)")
_ELEMENT_RE = re.compile(r"^[A-Z]\w*$")
_PROPERTY_KEY_RE = re.compile(r"^[A-Za-z_][\w-]*$")


# -----------------------------------------------------------------------------
# Open Frames
# -----------------------------------------------------------------------------


@dataclass
class _Frame:
    """A markup node still receiving children."""

    indent: int
    location: Optional[SourceLocation] = None
    properties: list[Property] = field(default_factory=list)
    children: list["_Frame"] = field(default_factory=list)

    def build(self) -> ASTNode:
        raise NotImplementedError

    def built_children(self) -> tuple[ASTNode, ...]:
        return tuple(child.build() for child in self.children)


@dataclass
class _RootFrame(_Frame):
    pass


@dataclass
class _ElementFrame(_Frame):
    element_type: str = ""
    explicit_tag: Optional[str] = None

    def build(self) -> UIElement:
        return UIElement(
            self.element_type,
            self.explicit_tag,
            tuple(self.properties),
            self.built_children(),
            self.location,
        )


@dataclass
class _PseudoFrame(_Frame):
    selector: str = ""

    def build(self) -> PseudoClass:
        return PseudoClass(self.selector, tuple(self.properties), self.location)


@dataclass
class _ConditionFrame(_Frame):
    branch: str = "if"
    expression: Optional[str] = None

    def build(self) -> Condition:
        return Condition(self.branch, self.expression, self.built_children(), self.location)


@dataclass
class _LoopFrame(_Frame):
    item: str = ""
    index: Optional[str] = None
    collection: str = ""
    key: Optional[str] = None

    def build(self) -> Loop:
        return Loop(
            self.item,
            self.index,
            self.collection,
            self.key,
            self.built_children(),
            self.location,
        )


@dataclass
class _Capture:
    """A declaration collecting its raw body lines."""

    token: LineToken
    header: tuple
    lines: list[BodyLine] = field(default_factory=list)

    @property
    def indent(self) -> int:
        return self.token.indent


@dataclass
class _ServerBuilder:
    name: str
    port: Optional[str]
    indent: int
    location: SourceLocation
    state: list[StateDeclaration] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)

    def build(self) -> ServerDefinition:
        return ServerDefinition(
            self.name, self.port, tuple(self.state), tuple(self.routes), self.location
        )


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class Parser:
    """
    Indentation-stack parser for Yggdra.

    Usage:
        parser = Parser(source, "App.ygg")
        program = parser.parse()
        if parser.get_diagnostics():
            print(parser.render_diagnostics())
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the parser.

        Args:
            source: Yggdra source text
            filename: Optional filename for diagnostics and locations
        """
        self.source = source
        self.filename = filename
        self._emitter = DiagnosticEmitter(source, filename or "<input>")

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def get_diagnostics(self) -> list[Diagnostic]:
        """Get all diagnostics emitted during parsing."""
        return list(self._emitter.diagnostics)

    def render_diagnostics(self, use_color: bool = True) -> str:
        """Render all diagnostics as formatted strings."""
        return self._emitter.render_all(use_color)

    def _report(
        self,
        token: LineToken,
        code: str,
        message: str,
        help_msg: Optional[str] = None,
        warning: bool = False,
    ) -> None:
        span = SourceSpan.for_line(token.line, token.raw, self.filename)
        make = self._emitter.warning if warning else self._emitter.error
        builder = make(code, message, span, token.raw.strip())
        if help_msg:
            builder.help(help_msg)
        builder.emit()

    def _drop(
        self, token: LineToken, code: str, message: str, help_msg: Optional[str] = None
    ) -> None:
        """Report a line as an error; it contributes nothing to the tree."""
        self._report(token, code, message, help_msg)

    def _location(self, token: LineToken) -> SourceLocation:
        return SourceLocation(token.line, token.indent + 1, self.filename)

    # -------------------------------------------------------------------------
    # Program Parsing
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the entire source.

        Returns:
            The root Program node; dropped lines are available through
            get_diagnostics() and on Program.diagnostics.
        """
        self._emitter.diagnostics.clear()
        self._root = _RootFrame(indent=-1)
        self._stack: list[_Frame] = [self._root]
        self._capture: Optional[_Capture] = None
        self._server: Optional[_ServerBuilder] = None
        self._open_server: Optional[_ServerBuilder] = None

        self._state: list[StateDeclaration] = []
        self._functions: list[FunctionDeclaration] = []
        self._services: list[ServiceDeclaration] = []
        self._imports: list[ImportDeclaration] = []
        self._lifecycle: Optional[LifecycleHook] = None

        for token in Lexer(self.source, self.filename).tokenize():
            self._process(token)
        self._close_capture()

        script = Script(
            state=tuple(self._state),
            functions=tuple(self._functions),
            services=tuple(self._services),
            imports=tuple(self._imports),
            lifecycle=self._lifecycle,
            server=self._server.build() if self._server else None,
        )
        return Program(
            self._root.built_children(),
            script,
            tuple(self._emitter.diagnostics),
        )

    def _process(self, token: LineToken) -> None:
        if self._capture is not None:
            if token.indent > self._capture.indent:
                self._capture.lines.append(BodyLine(token.line, token.indent, token.raw))
                return
            self._close_capture()

        if token.kind == LineKind.COMMENT:
            return

        if self._open_server is not None:
            if token.indent > self._open_server.indent:
                self._parse_server_line(token, self._open_server)
                return
            self._open_server = None

        while self._stack[-1].indent >= token.indent:
            self._stack.pop()
        parent = self._stack[-1]

        handler = self._handlers.get(token.kind, Parser._parse_unknown)
        handler(self, token, parent)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _parse_state(self, token: LineToken, parent: _Frame) -> None:
        declaration = self._state_declaration(token)
        if declaration is not None:
            self._state.append(declaration)

    def _state_declaration(self, token: LineToken) -> Optional[StateDeclaration]:
        match = _STATE_RE.match(token.text)
        if not match:
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed state declaration",
                "expected 'state [type] name = value'",
            )
            return None
        type_name, name, value = match.groups()
        return StateDeclaration(type_name or "any", name, value.strip(), self._location(token))

    def _parse_fn(self, token: LineToken, parent: _Frame) -> None:
        match = _FN_RE.match(token.text)
        if not match:
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed function declaration",
                "expected 'fn name(param, ...)'",
            )
            return
        name, params = match.groups()
        parameters = tuple(p.strip() for p in params.split(",") if p.strip())
        self._capture = _Capture(token, (name, parameters))

    def _parse_service(self, token: LineToken, parent: _Frame) -> None:
        match = _SERVICE_RE.match(token.text)
        if not match:
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed service declaration",
                "expected 'service Name: \"https://base.url\"'",
            )
            return
        name, base_url = match.groups()
        base_url = re.sub(r"[\"'`]", "", base_url).strip()
        self._capture = _Capture(token, (name, base_url))

    def _parse_use(self, token: LineToken, parent: _Frame) -> None:
        match = _USE_RE.match(token.text)
        if not match:
            self._drop(
                token, ErrorCode.E0202, "malformed use declaration", "expected 'use Source as alias'"
            )
            return
        source, alias = match.groups()
        self._imports.append(ImportDeclaration(source, alias, self._location(token)))

    def _parse_on_mount(self, token: LineToken, parent: _Frame) -> None:
        if token.text not in ("", ":"):
            self._drop(token, ErrorCode.E0202, "malformed onMount block", "'onMount' takes no arguments")
            return
        if self._lifecycle is not None:
            self._report(
                token,
                ErrorCode.W0201,
                "duplicate onMount block",
                "this block replaces the earlier one",
                warning=True,
            )
        self._capture = _Capture(token, ())

    def _parse_server(self, token: LineToken, parent: _Frame) -> None:
        duplicate = self._server is not None
        if duplicate:
            self._report(
                token,
                ErrorCode.W0201,
                "duplicate server block",
                "only the first server block of a file is compiled",
                warning=True,
            )

        match = _SERVER_RE.match(token.text)
        if not match:
            self._drop(
                token, ErrorCode.E0202, "malformed server declaration", "expected 'server Name: port'"
            )
            return
        name, port = match.groups()
        port = port.strip() if port and port.strip() else None
        builder = _ServerBuilder(name, port, token.indent, self._location(token))
        # A later server block is still checked but never compiled.
        if not duplicate:
            self._server = builder
        self._open_server = builder

    def _parse_server_line(self, token: LineToken, server: _ServerBuilder) -> None:
        if token.kind == LineKind.STATE:
            declaration = self._state_declaration(token)
            if declaration is not None:
                server.state.append(declaration)
        elif token.kind == LineKind.ROUTE:
            self._parse_route(token, server)
        else:
            self._drop(
                token,
                ErrorCode.E0203,
                "only state and route lines are allowed inside a server block",
            )

    def _parse_route(self, token: LineToken, server: _ServerBuilder) -> None:
        parts = token.text.split()
        malformed = (
            len(parts) < 2
            or not _NAME_RE.match(parts[0])
            or not parts[1].startswith("/")
            or any(not _SMART_PARAM_RE.match(p) for p in parts[2:])
        )
        if malformed:
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed route declaration",
                f"expected '{token.leader} name /path [?param ...]'",
            )
            return
        name, path = parts[0], parts[1]
        smart_params = tuple(p[1:] for p in parts[2:])
        self._capture = _Capture(token, (name, path, smart_params, server))

    def _parse_route_outside_server(self, token: LineToken, parent: _Frame) -> None:
        self._drop(
            token,
            ErrorCode.E0203,
            "route outside a server block",
            "routes must be indented under 'server Name: port'",
        )

    # -------------------------------------------------------------------------
    # Captures
    # -------------------------------------------------------------------------

    def _close_capture(self) -> None:
        capture, self._capture = self._capture, None
        if capture is None:
            return

        token = capture.token
        body = tuple(capture.lines)
        location = self._location(token)

        if token.kind == LineKind.FN:
            name, parameters = capture.header
            statements = parse_statements(body, filename=self.filename)
            self._functions.append(FunctionDeclaration(name, parameters, body, statements, location))
        elif token.kind == LineKind.ON_MOUNT:
            statements = parse_statements(body, filename=self.filename)
            self._lifecycle = LifecycleHook(body, statements, location)
        elif token.kind == LineKind.SERVICE:
            name, base_url = capture.header
            methods = tuple(self._service_methods(body))
            self._services.append(ServiceDeclaration(name, base_url, body, methods, location))
        elif token.kind == LineKind.ROUTE:
            name, path, smart_params, server = capture.header
            statements = parse_statements(
                body, route=True, emitter=self._emitter, filename=self.filename
            )
            server.routes.append(
                Route(
                    token.leader,
                    name,
                    path,
                    tuple(_PATH_PARAM_RE.findall(path)),
                    smart_params,
                    body,
                    statements,
                    location,
                )
            )

    def _service_methods(self, body: tuple[BodyLine, ...]) -> list[ServiceMethod]:
        methods = []
        for line in body:
            if line.text.startswith("#"):
                continue
            text = strip_comment(line.text)
            parts = text.split()
            valid = (
                len(parts) >= 3
                and parts[0].lower() in ROUTE_VERBS
                and _NAME_RE.match(parts[1])
                and all(_SMART_PARAM_RE.match(p) for p in parts[3:])
            )
            if not valid:
                span = SourceSpan.for_line(line.line, line.raw, self.filename)
                self._emitter.warning(
                    ErrorCode.W0202, "unsupported service line ignored", span, line.text
                ).help(f"expected '<{'|'.join(ROUTE_VERBS)}> name /path [?param ...]'").emit()
                continue

            verb, name, path = parts[0].lower(), parts[1], parts[2]
            methods.append(
                ServiceMethod(
                    verb,
                    name,
                    path,
                    tuple(_PATH_PARAM_RE.findall(path)),
                    tuple(p[1:] for p in parts[3:]),
                    SourceLocation(line.line, line.indent + 1, self.filename),
                )
            )
        return methods

    # -------------------------------------------------------------------------
    # Markup
    # -------------------------------------------------------------------------

    def _push(self, parent: _Frame, frame: _Frame) -> None:
        parent.children.append(frame)
        self._stack.append(frame)

    def _check_markup_parent(self, token: LineToken, parent: _Frame) -> bool:
        if isinstance(parent, _PseudoFrame):
            self._drop(
                token,
                ErrorCode.E0203,
                "pseudo-class blocks only hold style properties",
            )
            return False
        return True

    def _parse_element(self, token: LineToken, parent: _Frame) -> None:
        if not _ELEMENT_RE.match(token.text):
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed element line",
                "an element line holds a single name such as 'VBox'",
            )
            return
        if self._check_markup_parent(token, parent):
            frame = _ElementFrame(token.indent, self._location(token), element_type=token.text)
            self._push(parent, frame)

    def _parse_pseudo(self, token: LineToken, parent: _Frame) -> None:
        if not token.text:
            self._drop(token, ErrorCode.E0202, "missing pseudo-class selector", "e.g. '&hover'")
            return
        if not isinstance(parent, _ElementFrame):
            self._drop(token, ErrorCode.E0203, "pseudo-class outside an element")
            return
        self._push(parent, _PseudoFrame(token.indent, self._location(token), selector=token.text))

    def _parse_if(self, token: LineToken, parent: _Frame) -> None:
        if self._check_markup_parent(token, parent):
            frame = _ConditionFrame(
                token.indent, self._location(token), branch="if", expression=token.text
            )
            self._push(parent, frame)

    def _parse_else(self, token: LineToken, parent: _Frame) -> None:
        previous = parent.children[-1] if parent.children else None
        if not (isinstance(previous, _ConditionFrame) and previous.branch == "if"):
            self._drop(token, ErrorCode.E0203, "'else' without a matching 'if'")
            return
        self._push(parent, _ConditionFrame(token.indent, self._location(token), branch="else"))

    def _parse_loop(self, token: LineToken, parent: _Frame) -> None:
        match = _LOOP_RE.match(token.text)
        bindings = [b.strip() for b in match.group(1).split(",")] if match else []
        if not (1 <= len(bindings) <= 2 and all(_NAME_RE.match(b) for b in bindings)):
            self._drop(
                token,
                ErrorCode.E0202,
                "malformed loop",
                "expected 'loop item in items' or 'loop item, index in items'",
            )
            return
        if not self._check_markup_parent(token, parent):
            return
        frame = _LoopFrame(
            token.indent,
            self._location(token),
            item=bindings[0],
            index=bindings[1] if len(bindings) == 2 else None,
            collection=match.group(2).strip(),
        )
        self._push(parent, frame)

    def _parse_property(self, token: LineToken, parent: _Frame) -> None:
        text = token.text
        colon = text.find(":")
        if colon < 0:
            key, raw = text.strip(), None
        else:
            key, raw = text[:colon].strip(), text[colon + 1:].strip()

        if not _PROPERTY_KEY_RE.match(key):
            self._drop(
                token, ErrorCode.E0202, "malformed property", "expected '.key: value' or '.key'"
            )
            return

        value, is_dynamic = classify_value(raw)
        location = self._location(token)

        if isinstance(parent, _ElementFrame):
            if key != "tag":
                parent.properties.append(Property(key, value, is_dynamic, location))
            elif value is None:
                self._drop(token, ErrorCode.E0202, "'.tag' needs a tag name", "e.g. '.tag: section'")
            else:
                parent.explicit_tag = value
        elif isinstance(parent, _PseudoFrame):
            parent.properties.append(Property(key, value, is_dynamic, location))
        elif isinstance(parent, _LoopFrame):
            if key == "key" and raw:
                parent.key = raw
            else:
                self._drop(token, ErrorCode.E0203, "loops only accept a '.key: expr' property")
        else:
            self._drop(token, ErrorCode.E0203, "property outside an element")

    def _parse_unknown(self, token: LineToken, parent: _Frame) -> None:
        word = token.content.split()[0] if token.content.split() else token.content
        suggestions = suggest_similar(word, list(ALL_LEADERS))
        help_msg = f"did you mean '{suggestions[0]}'?" if suggestions else None
        self._drop(token, ErrorCode.E0201, "unrecognised line", help_msg)

    _handlers = {
        LineKind.STATE: _parse_state,
        LineKind.FN: _parse_fn,
        LineKind.SERVER: _parse_server,
        LineKind.ROUTE: _parse_route_outside_server,
        LineKind.PROPERTY: _parse_property,
        LineKind.PSEUDO: _parse_pseudo,
        LineKind.IF: _parse_if,
        LineKind.ELSE: _parse_else,
        LineKind.LOOP: _parse_loop,
        LineKind.SERVICE: _parse_service,
        LineKind.USE: _parse_use,
        LineKind.ON_MOUNT: _parse_on_mount,
        LineKind.ELEMENT: _parse_element,
    }


def parse(source: str, filename: Optional[str] = None) -> Program:
    """Parse Yggdra source text into a Program."""
    return Parser(source, filename).parse()
