"""
Structured parse diagnostics for Yggdra.

The parser never raises on malformed input. Instead every line it cannot use
is reported here, with the offending text, its line number and a reason, and
rendered in a compiler-style layout:

    error[E0202]: malformed state declaration
      --> App.ygg:3:1
       |
     3 | state = 5
       | ^^^^^^^^^
       |
       = help: expected 'state [type] name = value'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Catalog of diagnostic codes.

    - E02xx: dropped or misplaced source lines
    - W02xx: accepted lines with surprising effects
    """

    E0201 = "E0201"  # unrecognised line
    E0202 = "E0202"  # malformed declaration
    E0203 = "E0203"  # misplaced line
    E0204 = "E0204"  # malformed literal block line

    W0201 = "W0201"  # duplicate block
    W0202 = "W0202"  # unsupported service line


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",
            DiagnosticLevel.WARNING: "\033[93m",
        }
        return colors[self]


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A single-line range of source characters.

    Attributes:
        line: 1-indexed line number
        start_col: 1-indexed first column
        end_col: 1-indexed end column (exclusive)
        filename: Filename for display
    """

    line: int
    start_col: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def for_line(cls, line: int, raw: str, filename: Optional[str] = None) -> "SourceSpan":
        """Span covering the non-blank part of a physical line."""
        stripped = raw.rstrip()
        start = len(stripped) - len(stripped.lstrip()) + 1
        return cls(line, start, max(start + 1, len(stripped) + 1), filename or "<input>")

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.start_col}"

    @property
    def length(self) -> int:
        return max(1, self.end_col - self.start_col)


@dataclass(slots=True)
class DiagnosticLabel:
    """A span of source highlighted under the rendered line."""

    span: SourceSpan


@dataclass
class Diagnostic:
    """
    A single diagnostic: what was wrong, where, and how to fix it.

    Attributes:
        code: Diagnostic code (e.g. "E0201")
        level: Severity level
        message: The main message
        text: The offending source line, stripped
        labels: Highlighted source spans
        helps: Fix suggestions
    """

    code: str
    level: DiagnosticLevel
    message: str
    text: str = ""
    labels: list[DiagnosticLabel] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def primary_span(self) -> Optional[SourceSpan]:
        if not self.labels:
            return None
        return self.labels[0].span

    @property
    def line(self) -> int:
        span = self.primary_span
        return span.line if span else 0

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic with source context.

        Args:
            source_code: The original source code
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string
        """
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""

        code_part = f"[{self.code}]" if self.code else ""
        lines = [f"{level_color}{bold}{self.level.value}{code_part}{reset}: {bold}{self.message}{reset}"]

        span = self.primary_span
        if span is not None:
            lines.append(f"  {blue}-->{reset} {span}")

        if self.labels and source_lines:
            lines.append(f"   {blue}|{reset}")
            for label in sorted(self.labels, key=lambda l: l.span.line):
                if not 1 <= label.span.line <= len(source_lines):
                    continue
                lines.append(f"{blue}{label.span.line:3} |{reset} {source_lines[label.span.line - 1]}")
                underline = " " * (label.span.start_col - 1) + "^" * label.span.length
                lines.append(f"   {blue}|{reset} {level_color}{underline}{reset}")
            lines.append(f"   {blue}|{reset}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)

    def to_simple_message(self) -> str:
        """One-line form used by log output and exceptions."""
        where = f"line {self.line}: " if self.line else ""
        return f"[{self.code}] {where}{self.message}"


# =============================================================================
# Diagnostic Builder (Fluent API)
# =============================================================================


class DiagnosticBuilder:
    """
    Fluent builder for diagnostics:

        emitter.error(ErrorCode.E0201, "unrecognised line", span, text)
            .help("did you mean 'state'?")
            .emit()
    """

    def __init__(
        self,
        emitter: "DiagnosticEmitter",
        code: str,
        level: DiagnosticLevel,
        message: str,
        primary_span: Optional[SourceSpan] = None,
        text: str = "",
    ) -> None:
        self._emitter = emitter
        self._diagnostic = Diagnostic(code=code, level=level, message=message, text=text)
        if primary_span is not None:
            self._diagnostic.labels.append(DiagnosticLabel(primary_span))

    def help(self, message: str) -> "DiagnosticBuilder":
        self._diagnostic.helps.append(message)
        return self

    def emit(self) -> Diagnostic:
        """Build the diagnostic and hand it to the emitter."""
        self._emitter.add_diagnostic(self._diagnostic)
        return self._diagnostic


# =============================================================================
# Diagnostic Emitter
# =============================================================================


class DiagnosticEmitter:
    """
    Collects diagnostics for one source file, in emission order.

    Usage:
        emitter = DiagnosticEmitter(source, "App.ygg")
        emitter.error(ErrorCode.E0201, "unrecognised line", span).emit()
        print(emitter.render_all())
    """

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def error(
        self, code: str, message: str, span: Optional[SourceSpan] = None, text: str = ""
    ) -> DiagnosticBuilder:
        """Create an error diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.ERROR, message, span, text)

    def warning(
        self, code: str, message: str, span: Optional[SourceSpan] = None, text: str = ""
    ) -> DiagnosticBuilder:
        """Create a warning diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.WARNING, message, span, text)

    def has_errors(self) -> bool:
        return any(d.level == DiagnosticLevel.ERROR for d in self.diagnostics)

    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.ERROR)

    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.WARNING)

    def render_all(self, use_color: bool = True) -> str:
        """Render all diagnostics as a single string."""
        return "\n\n".join(d.render(self.source, use_color) for d in self.diagnostics)


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Minimum number of single-character insertions, deletions or
    substitutions turning one string into the other.
    """
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (c1 != c2),
                )
            )
        previous = current
    return previous[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Names from ``candidates`` within ``max_distance`` edits of ``name``,
    closest first (ties broken alphabetically).
    """
    scored = []
    for candidate in candidates:
        if abs(len(candidate) - len(name)) > max_distance:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((distance, candidate))

    scored.sort()
    return [candidate for _, candidate in scored[:max_suggestions]]


__all__ = [
    "ErrorCode",
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    "levenshtein_distance",
    "suggest_similar",
]
