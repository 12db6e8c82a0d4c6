"""
Backend dispatch.

A program with a server definition compiles to an Express module; every
other program compiles to a Vue component.
"""

from pathlib import Path
from typing import Union

from yggdra.compiler.ast_nodes import Program
from yggdra.compiler.server_codegen import ServerCodeGenerator
from yggdra.compiler.ui_codegen import UICodeGenerator


def generate(program: Program, source_path: Union[str, Path, None] = None) -> str:
    """Generate output text with the backend the program calls for."""
    if program.server is not None:
        return ServerCodeGenerator(source_path).generate(program)
    return UICodeGenerator(source_path).generate(program)


def output_suffix(program: Program) -> str:
    """File suffix of the generated output."""
    return ".js" if program.server is not None else ".vue"
