# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Error panels for the ``hapf`` command line.

Failures surface as an exception message. :func:`explain` maps that message
onto a short headline and the fix a user is most likely to need, and
:func:`show_error` renders both on stderr.
"""

import re
from typing import List, NamedTuple, Optional, Pattern

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)

MAX_DETAIL_LINES = 10


class ErrorHint(NamedTuple):
    pattern: Pattern
    headline: str
    fix: str


def _hint(pattern: str, headline: str, fix: str) -> ErrorHint:
    return ErrorHint(re.compile(pattern, re.IGNORECASE), headline, fix)


# First match wins; order from most to least specific.
HINTS: List[ErrorHint] = [
    _hint(
        r"address already in use|port .* in use",
        "Port already in use",
        "Pass a different --port or stop the process bound to it (`lsof -i :<port>`)",
    ),
    _hint(
        r"can't decode|invalid (start|continuation) byte",
        "Document is not valid UTF-8",
        "Re-save the document with UTF-8 encoding",
    ),
    _hint(
        r"exceeds max_document_bytes",
        "Document too large",
        "Split the document or raise HAPF_MAX_DOCUMENT_BYTES",
    ),
    _hint(
        r"validation error for hapfconfig|not a valid log level",
        "Invalid configuration",
        "Fix the HAPF_* environment variables or the hapf.yaml file",
    ),
    _hint(
        r"while (parsing|scanning)|mapping values are not allowed",
        "Config file is not valid YAML",
        "Fix the syntax of the config file",
    ),
    _hint(
        r"no such file or directory|not found",
        "Path not found",
        "Check the path and try again",
    ),
    _hint(
        r"permission denied",
        "Permission denied",
        "Check the file permissions",
    ),
]


def explain(detail: str) -> Optional[ErrorHint]:
    for hint in HINTS:
        if hint.pattern.search(detail):
            return hint
    return None


def show_error(title: str, detail: str, log_file: Optional[str] = None):
    """Print ``title`` in a red panel, with a fix when ``detail`` is recognised.

    The tail of ``detail`` is echoed verbatim below the panel.
    """
    body = Text(f"✗ {title}", style="bold red")
    hint = explain(detail)
    if hint is not None:
        body.append(f"\n\n{hint.headline}", style="red")
        body.append("\n\n→ Fix: ", style="bold yellow")
        body.append(hint.fix, style="yellow")
    console.print()
    console.print(Panel(body, border_style="red", expand=False))

    lines = detail.strip().splitlines()[-MAX_DETAIL_LINES:]
    if lines:
        console.print("[dim]Details:[/dim]")
        for line in lines:
            console.print(f"  │ {line}", markup=False, highlight=False, style="dim")
    if log_file:
        console.print(f"[dim]Full logs: {log_file}[/dim]")
    console.print()
