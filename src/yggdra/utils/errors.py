"""
Error types and source location tracking for the Yggdra compiler.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in a Yggdra source file.

    Attributes:
        line: 1-indexed physical line number
        column: 1-indexed column of the first non-blank character
        filename: Optional filename for error reporting
    """

    line: int
    column: int = 1
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class YggdraError(Exception):
    """Base exception for all Yggdra compiler errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        header = f"[{self.location}] {self.message}" if self.location else self.message
        if not (self.source_line and self.location):
            return header

        # Caret under the first character of the offending line
        padding = " " * (4 + self.location.column - 1)
        return f"{header}\n    {self.source_line}\n{padding}^"


class ParserError(YggdraError):
    """Raised in strict mode when parsing produced error diagnostics."""

    pass


class CodeGenError(YggdraError):
    """Raised when a generator cannot produce output for a well-formed tree."""

    pass


class ConfigError(YggdraError):
    """Raised when yggdra.toml cannot be read or holds invalid values."""

    pass
