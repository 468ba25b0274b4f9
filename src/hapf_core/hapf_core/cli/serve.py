# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""``hapf serve``: run the analysis HTTP server."""

import argparse
import logging
import os

import uvicorn
from rich.console import Console

from hapf_core.cli.config import CONFIG_FILE_ENV, HapfConfig
from hapf_core.cli.errors import show_error

LOGGER = logging.getLogger(__name__)
console = Console()

APP_FACTORY = "hapf_server.main:create_app"


def add_serve_parser(subparsers: "argparse._SubParsersAction") -> argparse.ArgumentParser:
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the analysis HTTP server",
        description="Serve document analysis, diagnostics and graphs over HTTP.",
    )
    serve_parser.add_argument(
        "--host", default=None, help="Host to bind to (default: HAPF_HOST or 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default: HAPF_PORT or 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    return serve_parser


def cmd_serve(args: argparse.Namespace, config: HapfConfig) -> int:
    """Execute the serve command."""
    host = args.host or config.host
    port = args.port if args.port is not None else config.port
    if not (1 <= port <= 65535):
        console.print(f"[red]Error: port {port} is outside the valid range (1-65535)[/red]")
        return 1

    if getattr(args, "config", None):
        # the app factory runs again in each reloaded worker process
        os.environ[CONFIG_FILE_ENV] = os.path.abspath(args.config)

    console.print(f"Starting HAPF analysis server on {host}:{port}")
    try:
        uvicorn.run(
            APP_FACTORY,
            factory=True,
            host=host,
            port=port,
            reload=args.reload,
            log_level=config.log_level.lower(),
        )
    except KeyboardInterrupt:
        console.print("\nServer stopped")
    except OSError as e:
        LOGGER.error(f"Server failed to start: {e}")
        show_error("Error starting server", str(e))
        return 1
    return 0
