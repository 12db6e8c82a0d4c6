"""
Yggdra Compiler Package.

This package contains the core compiler components:
- Lexer: Classifies every source line by its leader
- Parser: Builds an immutable Program from the line tokens
- AST: Node definitions for the syntax tree
- Statements: Parses captured bodies into statements and literal trees
- Grammar: Element and style tables for the UI backend
- UICodeGenerator: Emits a Vue 3 single-file component
- ServerCodeGenerator: Emits an Express route module
- CompilationPipeline: Parse, report and generate in one call
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from yggdra.compiler.ast_nodes import Program
from yggdra.compiler.codegen import generate, output_suffix
from yggdra.compiler.lexer import Lexer
from yggdra.compiler.parser import Parser, parse
from yggdra.compiler.server_codegen import ServerCodeGenerator
from yggdra.compiler.ui_codegen import UICodeGenerator
from yggdra.utils.diagnostics import Diagnostic, DiagnosticLevel
from yggdra.utils.errors import CodeGenError, ParserError, SourceLocation, YggdraError

logger = logging.getLogger(__name__)


@dataclass
class CompilationResult:
    """
    Complete result of one compilation.

    Attributes:
        output: Generated text; empty when compilation failed
        suffix: ``.vue`` or ``.js``, matching the backend that ran
        diagnostics: Everything the parser reported, in source order
        program: The parsed Program
        error: The error that stopped compilation, if any
        success: Whether output was produced
    """

    output: str
    suffix: str = ".vue"
    diagnostics: list[Diagnostic] = field(default_factory=list)
    program: Optional[Program] = None
    error: Optional[YggdraError] = None
    success: bool = True

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.WARNING]

    def has_errors(self) -> bool:
        """Check if compilation produced any errors."""
        return bool(self.errors) or not self.success

    def __str__(self) -> str:
        lines = ["Compilation Result:"]
        lines.append(f"  Success: {self.success}")
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for diagnostic in self.errors[:5]:
                lines.append(f"    - {diagnostic.to_simple_message()}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        if self.warnings:
            lines.append(f"  Warnings: {len(self.warnings)}")
        if self.error is not None:
            lines.append(f"  Failure: {self.error.message}")
        lines.append(f"  Generated Code: {len(self.output)} characters")
        return "\n".join(lines)


class CompilationPipeline:
    """
    Parse and generate in one step.

    Example:
        pipeline = CompilationPipeline(strict=True)
        result = pipeline.compile(source, "App.ygg")
        if result.success:
            print(result.output)
        else:
            print(result.error)

    Attributes:
        strict: Treat error diagnostics as fatal
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def compile(
        self, source: str, source_path: Union[str, Path, None] = None
    ) -> CompilationResult:
        filename = str(source_path) if source_path is not None else None
        parser = Parser(source, filename)
        program = parser.parse()
        diagnostics = parser.get_diagnostics()
        suffix = output_suffix(program)

        for diagnostic in diagnostics:
            logger.debug("%s: %s", filename or "<input>", diagnostic.to_simple_message())

        result = CompilationResult("", suffix, diagnostics, program)
        errors = result.errors
        if self.strict and errors:
            first = errors[0]
            span = first.primary_span
            location = SourceLocation(span.line, span.start_col, filename) if span else None
            result.error = ParserError(
                f"{first.message} ({len(errors)} error(s) in total)", location, first.text or None
            )
            result.success = False
            return result

        try:
            result.output = generate(program, source_path)
        except CodeGenError as e:
            logger.debug("generation failed for %s: %s", filename or "<input>", e.message)
            result.error = e
            result.success = False
        return result

    def compile_file(self, filepath: Union[str, Path]) -> CompilationResult:
        path = Path(filepath)
        return self.compile(path.read_text(encoding="utf-8"), path)


def compile_with_diagnostics(
    source: str,
    source_path: Union[str, Path, None] = None,
    strict: bool = False,
) -> CompilationResult:
    """
    Compile Yggdra source and return output, diagnostics and failure alike.

    Args:
        source: Yggdra source code string
        source_path: Optional path used in diagnostics and the output header
        strict: Whether error diagnostics stop compilation

    Returns:
        A CompilationResult; never raises for bad input
    """
    return CompilationPipeline(strict=strict).compile(source, source_path)


def compile_source(
    source: str,
    source_path: Union[str, Path, None] = None,
    strict: bool = False,
) -> str:
    """
    Compile Yggdra source code to a Vue component or an Express module.

    Args:
        source: Yggdra source code string
        source_path: Optional path used in diagnostics and the output header
        strict: Raise instead of dropping lines the parser reported as errors

    Returns:
        Generated source text

    Raises:
        ParserError: In strict mode, when parsing reported errors
        CodeGenError: When the generator cannot produce output
    """
    result = compile_with_diagnostics(source, source_path, strict)
    if not result.success:
        raise result.error
    return result.output


def compile_file(filepath: Union[str, Path], strict: bool = False) -> str:
    """
    Compile a ``.ygg`` file.

    Raises:
        OSError: If the file cannot be read
        ParserError: In strict mode, when parsing reported errors
        CodeGenError: When the generator cannot produce output
    """
    path = Path(filepath)
    return compile_source(path.read_text(encoding="utf-8"), path, strict)


__all__ = [
    "CompilationPipeline",
    "CompilationResult",
    "Lexer",
    "Parser",
    "ServerCodeGenerator",
    "UICodeGenerator",
    "compile_file",
    "compile_source",
    "compile_with_diagnostics",
    "generate",
    "output_suffix",
    "parse",
]
