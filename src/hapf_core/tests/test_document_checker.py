# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Integration tests for hapf_core.documents.checker.

Drives DocumentChecker.check_file() and check_all() over documents written
to a temporary directory.
"""

import os

from hapf_common.analysis import DiagnosticCode, Severity
from hapf_core.documents import CheckResult, DocumentChecker, FileIssue


# ---------------------------------------------------------------------------
# check_file
# ---------------------------------------------------------------------------


def test_check_file_valid_document(documents_dir):
    result = DocumentChecker().check_file(str(documents_dir / "valid.hapf"))
    assert result.issues == []
    assert result.files_checked == [str(documents_dir / "valid.hapf")]


def test_check_file_reports_positions_and_suggestions(documents_dir):
    path = str(documents_dir / "nested" / "invalid.hapf")
    result = DocumentChecker().check_file(path)

    assert [(i.line, i.col, i.code) for i in result.issues] == [
        (6, 7, DiagnosticCode.UNUSED_VARIABLE),
        (7, 7, DiagnosticCode.UNDEFINED_MODULE),
        (7, 14, DiagnosticCode.UNDEFINED_VARIABLE),
    ]
    assert len(result.errors) == 2
    assert len(result.warnings) == 1
    undefined_variable = result.issues[2]
    assert undefined_variable.suggestion == "'facts'"
    assert str(undefined_variable) == (
        f"{path}:7:14: error: Undefined variable 'fcts'. Did you mean 'facts'?"
    )


def test_check_file_missing(tmp_path):
    path = str(tmp_path / "missing.hapf")
    result = DocumentChecker().check_file(path)
    assert result.has_errors
    assert result.issues[0].message == f"File not found: {path}"


def test_check_file_not_utf8(tmp_path):
    path = tmp_path / "latin1.hapf"
    path.write_bytes('module "caf\xe9" {}'.encode("latin-1"))
    result = DocumentChecker().check_file(str(path))
    assert result.has_errors
    assert result.issues[0].message.startswith("Cannot decode document as UTF-8")


def test_check_file_too_large(documents_dir):
    result = DocumentChecker(max_document_bytes=10).check_file(str(documents_dir / "valid.hapf"))
    assert len(result.issues) == 1
    assert "exceeds max_document_bytes (10)" in result.issues[0].message


def test_check_text(documents_dir):
    text = (documents_dir / "nested" / "invalid.hapf").read_text()
    result = DocumentChecker().check_text(text, name="buffer")
    assert result.files_checked == ["buffer"]
    assert all(i.file == "buffer" for i in result.issues)
    assert result.has_errors and result.has_warnings


# ---------------------------------------------------------------------------
# check_all
# ---------------------------------------------------------------------------


def test_check_all_directory_is_recursive(documents_dir):
    result = DocumentChecker().check_all(str(documents_dir))
    assert sorted(os.path.basename(f) for f in result.files_checked) == [
        "invalid.hapf",
        "valid.hapf",
    ]
    assert {os.path.basename(i.file) for i in result.issues} == {"invalid.hapf"}


def test_check_all_honours_suffix(documents_dir):
    (documents_dir / "other.dsl").write_text("pipeline \"p\" { run ghost() }")
    result = DocumentChecker(suffix=".dsl").check_all(str(documents_dir))
    assert [os.path.basename(f) for f in result.files_checked] == ["other.dsl"]


def test_check_all_empty_directory_warns(tmp_path):
    result = DocumentChecker().check_all(str(tmp_path))
    assert not result.has_errors
    assert result.warnings[0].message == "No document files found in directory"


def test_check_all_single_file(documents_dir):
    result = DocumentChecker().check_all(str(documents_dir / "valid.hapf"))
    assert len(result.files_checked) == 1
    assert not result.has_errors


def test_check_all_missing_path(tmp_path):
    path = str(tmp_path / "nowhere")
    result = DocumentChecker().check_all(path)
    assert result.issues[0].message == f"Path not found: {path}"


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


def test_check_result_to_dict():
    result = CheckResult(files_checked=["a.hapf"])
    result.add_error("a.hapf", "broken", line=3)
    result.add_warning("a.hapf", "odd")
    data = result.to_dict()
    assert data["files_checked"] == ["a.hapf"]
    assert (data["errors"], data["warnings"]) == (1, 1)
    assert data["issues"][0] == {
        "file": "a.hapf",
        "line": 3,
        "col": None,
        "severity": "error",
        "code": None,
        "message": "broken",
        "suggestion": None,
    }


def test_check_result_merge():
    first = CheckResult(files_checked=["a"])
    first.add_error("a", "x")
    second = CheckResult(files_checked=["b"])
    second.add_warning("b", "y")
    first.merge(second)
    assert first.files_checked == ["a", "b"]
    assert len(first.issues) == 2


def test_file_issue_str_without_position():
    issue = FileIssue("a.hapf", None, None, Severity.WARNING, "odd")
    assert str(issue) == "a.hapf: warning: odd"
