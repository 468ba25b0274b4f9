# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Check HAPF documents on disk.

File-level problems (missing, unreadable, undecodable or oversize files) are
reported as issues of the file rather than raised, so a directory check always
covers every document it finds.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from hapf_common.analysis import Diagnostic, DiagnosticCode, Severity, check_document

LOGGER = logging.getLogger(__name__)


@dataclass
class FileIssue:
    """A problem found in one document, or with the document file itself."""

    file: str
    line: Optional[int]
    col: Optional[int]
    severity: Severity
    message: str
    code: Optional[DiagnosticCode] = None
    suggestion: Optional[str] = None

    @classmethod
    def from_diagnostic(cls, file: str, diagnostic: Diagnostic) -> "FileIssue":
        return cls(
            file=file,
            line=diagnostic.start_line,
            col=diagnostic.start_col,
            severity=diagnostic.severity,
            message=diagnostic.message,
            code=diagnostic.code,
            suggestion=diagnostic.suggestion,
        )

    def __str__(self) -> str:
        loc = f"{self.file}"
        if self.line is not None:
            loc += f":{self.line}"
            if self.col is not None:
                loc += f":{self.col}"
        prefix = "error" if self.severity is Severity.ERROR else "warning"
        msg = f"{loc}: {prefix}: {self.message}"
        if self.suggestion:
            msg += f" Did you mean {self.suggestion}?"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "col": self.col,
            "severity": self.severity.value,
            "code": self.code.value if self.code else None,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass
class CheckResult:
    """Result of checking one or more documents."""

    issues: List[FileIssue] = field(default_factory=list)
    files_checked: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(i.severity is Severity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity is Severity.WARNING for i in self.issues)

    @property
    def errors(self) -> List[FileIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[FileIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    def add_error(self, file: str, message: str, line: Optional[int] = None):
        self.issues.append(FileIssue(file, line, None, Severity.ERROR, message))

    def add_warning(self, file: str, message: str, line: Optional[int] = None):
        self.issues.append(FileIssue(file, line, None, Severity.WARNING, message))

    def add_diagnostics(self, file: str, diagnostics: Iterable[Diagnostic]):
        self.issues.extend(FileIssue.from_diagnostic(file, d) for d in diagnostics)

    def merge(self, other: "CheckResult"):
        self.issues.extend(other.issues)
        self.files_checked.extend(other.files_checked)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_checked": list(self.files_checked),
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "issues": [i.to_dict() for i in self.issues],
        }


class DocumentChecker:
    """Runs the document analysis over files and directories."""

    def __init__(self, suffix: str = ".hapf", max_document_bytes: Optional[int] = None):
        """
        Initialize the checker.

        Args:
            suffix: File suffix identifying documents when scanning directories
            max_document_bytes: Files larger than this are reported, not analysed
        """
        self.suffix = suffix
        self.max_document_bytes = max_document_bytes

    def _read_document(self, filepath: str, result: CheckResult) -> Optional[str]:
        try:
            size = os.path.getsize(filepath)
            if self.max_document_bytes is not None and size > self.max_document_bytes:
                result.add_error(
                    filepath,
                    f"Document too large: {size} bytes exceeds max_document_bytes "
                    f"({self.max_document_bytes})",
                )
                return None
            with open(filepath, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            result.add_error(filepath, f"File not found: {filepath}")
            return None
        except OSError as e:
            result.add_error(filepath, f"Error reading file: {e}")
            return None

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            result.add_error(filepath, f"Cannot decode document as UTF-8: {e}")
            return None

    def check_text(self, text: str, name: str = "<text>") -> CheckResult:
        result = CheckResult(files_checked=[name])
        result.add_diagnostics(name, check_document(text))
        return result

    def check_file(self, filepath: str) -> CheckResult:
        """Check a single document file."""
        result = CheckResult(files_checked=[filepath])
        text = self._read_document(filepath, result)
        if text is None:
            return result
        result.add_diagnostics(filepath, check_document(text))
        LOGGER.debug(f"{filepath}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
        return result

    def check_all(self, path: str) -> CheckResult:
        """
        Check documents.

        Args:
            path: A document file, or a directory searched recursively for
                  files ending in the configured suffix.

        Returns:
            CheckResult with all issues found.
        """
        result = CheckResult()

        if os.path.isfile(path):
            result.merge(self.check_file(path))

        elif os.path.isdir(path):
            documents = sorted(Path(path).rglob(f"*{self.suffix}"))
            if not documents:
                result.add_warning(path, "No document files found in directory")
                return result
            for document in documents:
                result.merge(self.check_file(str(document)))

        else:
            result.add_error(path, f"Path not found: {path}")

        return result
