"""
Yggdra Utilities Package.

Error types, source locations and parse diagnostics.
"""

from yggdra.utils.diagnostics import (
    Diagnostic,
    DiagnosticBuilder,
    DiagnosticEmitter,
    DiagnosticLabel,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    levenshtein_distance,
    suggest_similar,
)
from yggdra.utils.errors import (
    CodeGenError,
    ConfigError,
    ParserError,
    SourceLocation,
    YggdraError,
)

__all__ = [
    # Errors
    "YggdraError",
    "ParserError",
    "CodeGenError",
    "ConfigError",
    "SourceLocation",
    # Diagnostics
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
