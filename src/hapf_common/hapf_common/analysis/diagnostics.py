# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Positioned diagnostics produced by the structural and semantic checkers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"

    @property
    def marker(self) -> int:
        """Editor marker severity (8 = error, 4 = warning)."""
        return 8 if self is Severity.ERROR else 4


class DiagnosticCode(Enum):
    UNBALANCED_BRACES = "unbalanced-braces"
    MISSING_QUOTED_NAME = "missing-quoted-name"
    UNDEFINED_MODULE = "undefined-module"
    UNDEFINED_VARIABLE = "undefined-variable"
    DUPLICATE_DECLARATION = "duplicate-declaration"
    UNUSED_VARIABLE = "unused-variable"
    RUNTIME_FAILURE = "runtime-failure"


@dataclass(frozen=True)
class Diagnostic:
    """A problem anchored to a 1-based line/column range.

    ``end_col`` is exclusive, matching editor marker conventions.
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    message: str
    severity: Severity
    code: DiagnosticCode
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        prefix = "error" if self.severity is Severity.ERROR else "warning"
        msg = f"{self.start_line}:{self.start_col}: {prefix}: {self.message}"
        if self.suggestion:
            msg += f" Did you mean {self.suggestion}?"
        return msg

    def to_marker(self) -> Dict[str, Any]:
        return {
            "startLineNumber": self.start_line,
            "startColumn": self.start_col,
            "endLineNumber": self.end_line,
            "endColumn": self.end_col,
            "message": self.message,
            "severity": self.severity.marker,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_line": self.start_line,
            "start_col": self.start_col,
            "end_line": self.end_line,
            "end_col": self.end_col,
            "message": self.message,
            "severity": self.severity.value,
            "code": self.code.value,
            "suggestion": self.suggestion,
        }


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    return sorted(
        diagnostics,
        key=lambda d: (d.start_line, d.start_col, d.code.value, d.end_line, d.end_col, d.message),
    )


def errors(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    return [d for d in diagnostics if d.severity is Severity.ERROR]


def warnings(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    return [d for d in diagnostics if d.severity is Severity.WARNING]
