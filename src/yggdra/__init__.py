"""
Yggdra - an indentation-based language for Vue components and Express servers.

A ``.ygg`` file describes either a UI component (state, functions, service
clients and a markup tree with scoped styles) or, when it contains a
``server`` block, an HTTP route module.
"""

from yggdra.compiler import compile_file, compile_source, compile_with_diagnostics
from yggdra.compiler.codegen import generate
from yggdra.compiler.lexer import Lexer
from yggdra.compiler.parser import Parser, parse

__version__ = "0.2.0"
__all__ = [
    "compile_source",
    "compile_file",
    "compile_with_diagnostics",
    "parse",
    "generate",
    "Lexer",
    "Parser",
]
