# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Entry point of the ``hapf`` command-line tool."""

import argparse
import sys
from typing import Callable, Dict, List, Optional

import yaml
from pydantic import ValidationError
from rich.console import Console

from hapf_core.cli.check import add_check_parser, cmd_check
from hapf_core.cli.config import HapfConfig, load_and_validate_config
from hapf_core.cli.errors import show_error
from hapf_core.cli.graph import add_graph_parser, cmd_graph
from hapf_core.cli.serve import add_serve_parser, cmd_serve
from hapf_core.logconfig import configure_logging

console = Console()

COMMANDS: Dict[str, Callable[[argparse.Namespace, HapfConfig], int]] = {
    "check": cmd_check,
    "graph": cmd_graph,
    "serve": cmd_serve,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all ``hapf`` commands."""
    parser = argparse.ArgumentParser(
        description="HAPF document tools",
        prog="hapf",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (default: hapf.yaml when present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Command to run",
        required=True,
    )
    add_check_parser(subparsers)
    add_graph_parser(subparsers)
    add_serve_parser(subparsers)
    return parser


def dispatch(args: argparse.Namespace) -> int:
    """Load the configuration, set up logging and run the selected command."""
    try:
        config = load_and_validate_config(args.config)
    except (ValidationError, yaml.YAMLError, ValueError, OSError) as e:
        show_error("Invalid configuration", str(e))
        return 1

    configure_logging(
        args.log_level or config.log_level,
        json_format=config.log_json,
        log_file=config.log_file,
        max_bytes=config.max_log_file_bytes,
        backup_count=config.log_backup_count,
    )

    command = COMMANDS.get(args.command)
    if command is None:
        console.print(f"[red]Unknown command: {args.command}[/red]")
        return 1
    return command(args, config)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return dispatch(args)


if __name__ == "__main__":
    sys.exit(main())
