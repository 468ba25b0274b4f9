# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging configuration shared by the ``hapf`` CLI and the analysis server.

Per-request values (request id, endpoint, duration) live in context variables
so that concurrent requests never see each other's values. The
:class:`RequestContextFilter` copies them onto every log record, which makes
them available to both :data:`LOG_FORMAT` and :data:`JSON_FORMAT`.
"""

import logging
import logging.handlers
import os
from contextvars import ContextVar
from typing import List, Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(request_id)s] %(name)s: %(message)s"
JSON_FORMAT = (
    '{"app_date": "%(asctime)s", "app_name": "%(name)s", "app_level": "%(levelname)s", '
    '"request_id": "%(request_id)s", "endpoint": "%(endpoint)s", '
    '"duration_ms": "%(duration_ms)s", "msg": "%(message)s"}'
)
DEFAULT_LOGGER_LEVELS = {
    "uvicorn.access": logging.WARNING,
}

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
request_endpoint_var: ContextVar[str] = ContextVar("request_endpoint", default="")
request_duration_var: ContextVar[str] = ContextVar("request_duration", default="")


class RequestContext:
    """Convenience accessors for the per-request context variables."""

    @staticmethod
    def set(request_id: str, endpoint: str = "", duration_ms: str = "") -> None:
        request_id_var.set(request_id)
        request_endpoint_var.set(endpoint)
        request_duration_var.set(duration_ms)

    @staticmethod
    def clear() -> None:
        RequestContext.set("", "", "")


class RequestContextFilter(logging.Filter):
    """Inject the request context variables into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.endpoint = request_endpoint_var.get()
        record.duration_ms = request_duration_var.get()
        return True


def configure_logging(
    default_level: Optional[str] = None,
    json_format: bool = False,
    log_file: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
) -> None:
    """Configure the root logger.

    Logs go to stderr, and additionally to *log_file* when given. A positive
    *max_bytes* turns the file handler into a rotating one keeping
    *backup_count* old files.
    """
    level = (default_level or "INFO").upper()
    formatter = logging.Formatter(JSON_FORMAT if json_format else LOG_FORMAT)
    context_filter = RequestContextFilter()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if max_bytes:
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    log_file, maxBytes=max_bytes, backupCount=backup_count or 0
                )
            )
        else:
            handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

    for name, logger_level in DEFAULT_LOGGER_LEVELS.items():
        logging.getLogger(name).setLevel(max(logger_level, root.level))
