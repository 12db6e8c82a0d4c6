"""
Diagnostic generation for Yggdra LSP.

This module converts parser diagnostics and generator failures into
LSP-compatible diagnostic messages for display in editors.
"""

from typing import Optional

from lsprotocol import types

from yggdra.compiler import CompilationPipeline
from yggdra.utils.diagnostics import Diagnostic as CompilerDiagnostic
from yggdra.utils.diagnostics import DiagnosticLevel
from yggdra.utils.errors import YggdraError

DIAGNOSTIC_SOURCE = "yggdra"

LEVEL_TO_SEVERITY: dict[DiagnosticLevel, types.DiagnosticSeverity] = {
    DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
    DiagnosticLevel.WARNING: types.DiagnosticSeverity.Warning,
}


class DiagnosticProvider:
    """
    Generates LSP diagnostics from Yggdra source code.

    The whole compilation pipeline runs in lenient mode, so every parser
    diagnostic is reported together with any generator failure (an
    underivable server port or a duplicate route).
    """

    def __init__(self, source: str, uri: str) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The Yggdra source code to analyze
            uri: The document URI, used as the filename in messages
        """
        self.source = source
        self.uri = uri
        self.lines = source.splitlines()
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects, in source order
        """
        self._diagnostics = []

        result = CompilationPipeline(strict=False).compile(self.source, self.uri)
        for diagnostic in result.diagnostics:
            self._add_compiler_diagnostic(diagnostic)
        if result.error is not None:
            self._add_yggdra_error(result.error)

        return self._diagnostics

    def _line_range(self, line: int, start: int, end: Optional[int] = None) -> types.Range:
        # line and start are 0-indexed here
        if end is None:
            text = self.lines[line] if 0 <= line < len(self.lines) else ""
            end = max(start + 1, len(text.rstrip()))
        return types.Range(
            start=types.Position(line=line, character=start),
            end=types.Position(line=line, character=max(start, end)),
        )

    def _add_compiler_diagnostic(self, diagnostic: CompilerDiagnostic) -> None:
        span = diagnostic.primary_span
        if span is not None:
            range_ = self._line_range(
                max(0, span.line - 1), max(0, span.start_col - 1), max(0, span.end_col - 1)
            )
        else:
            range_ = self._line_range(0, 0)

        message = diagnostic.message
        if diagnostic.helps:
            message += "\n" + "\n".join(f"help: {h}" for h in diagnostic.helps)

        self._diagnostics.append(
            types.Diagnostic(
                range=range_,
                message=message,
                severity=LEVEL_TO_SEVERITY.get(diagnostic.level, types.DiagnosticSeverity.Error),
                code=diagnostic.code,
                source=DIAGNOSTIC_SOURCE,
            )
        )

    def _add_yggdra_error(self, error: YggdraError) -> None:
        if error.location is not None:
            range_ = self._line_range(
                max(0, error.location.line - 1), max(0, error.location.column - 1)
            )
        else:
            range_ = self._line_range(0, 0)

        self._diagnostics.append(
            types.Diagnostic(
                range=range_,
                message=error.message,
                severity=types.DiagnosticSeverity.Error,
                source=DIAGNOSTIC_SOURCE,
            )
        )


def get_diagnostics(source: str, uri: str) -> list[types.Diagnostic]:
    """Convenience wrapper around DiagnosticProvider."""
    return DiagnosticProvider(source, uri).get_diagnostics()
