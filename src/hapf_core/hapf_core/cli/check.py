# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""``hapf check``: report diagnostics for documents on disk."""

import argparse
import json

from rich.console import Console
from rich.table import Table
from rich.text import Text

from hapf_common.analysis import Severity
from hapf_core.cli.config import HapfConfig
from hapf_core.documents import CheckResult, DocumentChecker

console = Console()


def add_check_parser(subparsers: "argparse._SubParsersAction") -> argparse.ArgumentParser:
    check_parser = subparsers.add_parser(
        "check",
        help="Check HAPF documents",
        description=(
            "Check HAPF documents for unbalanced braces, unquoted declaration "
            "names, undefined modules and variables, and other issues."
        ),
    )
    check_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help=(
            "Path to a document or a directory searched recursively for documents "
            "(default: current directory)"
        ),
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "table", "json"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "--warnings-as-errors",
        "-W",
        action="store_true",
        help="Treat warnings as errors (affects exit code)",
    )
    check_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output errors and summary",
    )
    return check_parser


def print_result_text(result: CheckResult, quiet: bool = False):
    """Print check result in text format."""
    for issue in result.issues:
        if quiet and issue.severity is Severity.WARNING:
            continue
        style = "red" if issue.severity is Severity.ERROR else "yellow"
        console.print(Text(str(issue), style=style), soft_wrap=True)


def print_result_table(result: CheckResult, quiet: bool = False):
    """Print check result in table format."""
    if not result.issues:
        return

    table = Table(title="Check Results")
    table.add_column("File", style="cyan")
    table.add_column("Line", style="magenta")
    table.add_column("Col", style="magenta")
    table.add_column("Severity", style="bold")
    table.add_column("Message")
    table.add_column("Suggestion", style="green")

    for issue in result.issues:
        if quiet and issue.severity is Severity.WARNING:
            continue
        severity_style = "red" if issue.severity is Severity.ERROR else "yellow"
        table.add_row(
            issue.file,
            str(issue.line) if issue.line else "-",
            str(issue.col) if issue.col else "-",
            Text(issue.severity.value, style=severity_style),
            Text(issue.message),
            Text(issue.suggestion or "-"),
        )

    console.print(table)


def print_result_json(result: CheckResult, quiet: bool = False):
    data = result.to_dict()
    if quiet:
        data["issues"] = [i for i in data["issues"] if i["severity"] == Severity.ERROR.value]
    console.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)


def cmd_check(args: argparse.Namespace, config: HapfConfig) -> int:
    """Execute the check command."""
    checker = DocumentChecker(
        suffix=config.document_suffix, max_document_bytes=config.max_document_bytes
    )
    machine_output = args.format == "json"

    if not args.quiet and not machine_output:
        console.print(Text(f"Checking: {args.path}"), soft_wrap=True)

    result = checker.check_all(args.path)

    if args.format == "table":
        print_result_table(result, args.quiet)
    elif machine_output:
        print_result_json(result, args.quiet)
    else:
        print_result_text(result, args.quiet)

    error_count = len(result.errors)
    warning_count = len(result.warnings)

    if not machine_output:
        if error_count == 0 and warning_count == 0:
            if not args.quiet:
                console.print(
                    f"[green]All documents valid ({len(result.files_checked)} checked).[/green]"
                )
        else:
            summary_parts = []
            if error_count > 0:
                summary_parts.append(
                    f"[red]{error_count} error{'s' if error_count != 1 else ''}[/red]"
                )
            if warning_count > 0:
                summary_parts.append(
                    f"[yellow]{warning_count} warning{'s' if warning_count != 1 else ''}[/yellow]"
                )
            console.print(f"\nCheck complete: {', '.join(summary_parts)}")

    if result.has_errors:
        return 1
    if args.warnings_as_errors and result.has_warnings:
        return 1
    return 0
