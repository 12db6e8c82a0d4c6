"""
Pytest configuration and shared fixtures for Yggdra tests.
"""

import textwrap

import pytest

from yggdra.compiler import CompilationResult, compile_with_diagnostics
from yggdra.compiler.ast_nodes import Program
from yggdra.compiler.lexer import Lexer
from yggdra.compiler.parser import Parser
from yggdra.compiler.server_codegen import ServerCodeGenerator
from yggdra.compiler.tokens import LineToken
from yggdra.compiler.ui_codegen import UICodeGenerator
from yggdra.utils.diagnostics import Diagnostic


def dedent(source: str) -> str:
    """Strip the common indentation of a triple-quoted test source."""
    return textwrap.dedent(source).strip("\n") + "\n"


@pytest.fixture
def tokenize():
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[LineToken]:
        return Lexer(dedent(source), "test.ygg").tokenize()

    return _tokenize


@pytest.fixture
def parser_factory():
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        return Parser(dedent(source), "test.ygg")

    return _create_parser


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse source code into a Program."""

    def _parse(source: str) -> Program:
        return parser_factory(source).parse()

    return _parse


@pytest.fixture
def parse_with_diagnostics(parser_factory):
    """Fixture returning the Program together with the parser's diagnostics."""

    def _parse(source: str) -> tuple[Program, list[Diagnostic]]:
        parser = parser_factory(source)
        program = parser.parse()
        return program, parser.get_diagnostics()

    return _parse


@pytest.fixture
def compile_ui(parse):
    """Fixture to compile Yggdra source to a Vue component."""

    def _compile(source: str) -> str:
        return UICodeGenerator().generate(parse(source))

    return _compile


@pytest.fixture
def compile_server(parse):
    """Fixture to compile Yggdra source holding a server to an Express module."""

    def _compile(source: str) -> str:
        return ServerCodeGenerator().generate(parse(source))

    return _compile


@pytest.fixture
def compile_result():
    """Fixture running the whole pipeline and returning the CompilationResult."""

    def _compile(source: str, strict: bool = False) -> CompilationResult:
        return compile_with_diagnostics(dedent(source), "test.ygg", strict=strict)

    return _compile
