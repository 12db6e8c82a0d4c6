"""
Yggdra Server Code Generator.

Transforms a Program holding a server definition into an Express module:
middleware bootstrap, one mutable binding per server state entry, one async
handler per route and a final ``app.listen`` call.
"""

import re
from pathlib import Path
from typing import Optional, Sequence, Union
from urllib.parse import urlparse

from yggdra.compiler.ast_nodes import (
    Comment,
    Program,
    RawStatement,
    ReturnStatement,
    Route,
    ServerDefinition,
    Statement,
)
from yggdra.compiler.markup import CodeWriter, js_string, js_template_text, render_literal
from yggdra.compiler.statements import has_top_level_return
from yggdra.compiler.values import unquote
from yggdra.utils.errors import CodeGenError, SourceLocation

DEFAULT_PORT = 3000

_HOST_PORT_RE = re.compile(r"^[\w.-]*:(\d+)/?$")


def derive_port(
    raw: Optional[str], location: Optional[SourceLocation] = None
) -> Union[int, str]:
    """
    Port argument of ``app.listen`` for a server declaration.

    ``3000``, ``"3000"``, ``host:3000`` and URLs with an explicit port give
    that port; a missing value or a base URL without a port means 3000. Any
    other unquoted value is a JavaScript expression such as
    ``process.env.PORT || 3000`` and is passed through verbatim.

    Raises:
        CodeGenError: If a literal port lies outside 1-65535
    """
    if raw is None:
        return DEFAULT_PORT

    raw = raw.strip()
    text = unquote(raw).strip()
    quoted = text != raw

    if text.isdigit():
        return _check_port(int(text), raw, location)

    match = _HOST_PORT_RE.match(text)
    if match:
        return _check_port(int(match.group(1)), raw, location)

    if "://" in text:
        try:
            port = urlparse(text).port
        except ValueError:
            raise CodeGenError(f"invalid port in '{raw}'", location) from None
        return DEFAULT_PORT if port is None else _check_port(port, raw, location)

    if quoted or not text:
        return DEFAULT_PORT
    return text


def _check_port(port: int, raw: str, location: Optional[SourceLocation]) -> int:
    if not 0 < port <= 65535:
        raise CodeGenError(f"port out of range in '{raw}'", location)
    return port


class ServerCodeGenerator:
    """
    Generates an Express route module from a Program.

    Usage:
        generator = ServerCodeGenerator("api.ygg")
        js_source = generator.generate(program)
    """

    def __init__(self, source_path: Union[str, Path, None] = None, indent_size: int = 2) -> None:
        self.source_path = source_path
        self.indent_size = indent_size

    def generate(self, program: Program) -> str:
        """
        Generate the module text.

        Raises:
            CodeGenError: On a program without a server, duplicate routes or
                an unusable port
        """
        server = program.server
        if server is None:
            raise CodeGenError("program has no server definition")

        port = derive_port(server.port, server.location)
        self._check_routes(server)

        writer = CodeWriter(self.indent_size)
        if self.source_path:
            writer.emit(f"// Generated by Yggdra from {Path(self.source_path).name}")
        writer.emit("const express = require('express');")
        writer.emit("const cors = require('cors');")
        writer.emit()
        writer.emit("const app = express();")
        writer.emit("app.use(cors());")
        writer.emit("app.use(express.json());")
        writer.emit()
        writer.emit(f"// Routes for {server.name}")

        if server.state:
            writer.emit()
            for state in server.state:
                writer.emit(f"let {state.name} = {state.value};")

        for route in server.routes:
            writer.emit()
            self._route(writer, route)

        writer.emit()
        writer.emit(f"app.listen({port}, () => {{")
        writer.indent()
        if isinstance(port, int):
            message = js_string(f"Server {server.name} listening on port {port}")
        else:
            message = f"`{js_template_text(f'Server {server.name} listening on port ')}${{{port}}}`"
        writer.emit(f"console.log({message});")
        writer.dedent()
        writer.emit("});")
        return writer.getvalue() + "\n"

    def _check_routes(self, server: ServerDefinition) -> None:
        seen: set[tuple[str, str]] = set()
        for route in server.routes:
            key = (route.verb, route.path)
            if key in seen:
                raise CodeGenError(
                    f"duplicate route {route.verb.upper()} {route.path}", route.location
                )
            seen.add(key)

    def _route(self, writer: CodeWriter, route: Route) -> None:
        writer.emit(f"app.{route.verb}({js_string(route.path)}, async (req, res) => {{")
        writer.indent()

        source = "req.query" if route.verb == "get" else "req.body"
        for name in route.path_params:
            writer.emit(f"const {name} = req.params.{name};")
        for name in route.smart_params:
            if name not in route.path_params:
                writer.emit(f"const {name} = {source}.{name};")

        emit_route_statements(writer, route.statements)

        if not has_top_level_return(route.statements):
            writer.emit("if (!res.headersSent) {")
            writer.indent()
            writer.emit("res.json({ status: 'ok' });")
            writer.dedent()
            writer.emit("}")

        writer.dedent()
        writer.emit("});")


def emit_route_statements(writer: CodeWriter, statements: Sequence[Statement]) -> None:
    for statement in statements:
        if isinstance(statement, Comment):
            writer.emit(f"// {statement.text}".rstrip())
        elif isinstance(statement, ReturnStatement):
            if statement.block is not None:
                writer.emit(f"return res.json({render_literal(statement.block)});")
            else:
                writer.emit(f"return res.json({statement.value});")
        elif isinstance(statement, RawStatement):
            writer.emit(statement.text)
            _emit_nested(writer, statement.body)


def _emit_nested(writer: CodeWriter, body: Sequence[Statement]) -> None:
    if body:
        writer.indent()
        emit_route_statements(writer, body)
        writer.dedent()
