# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Central HAPF tooling configuration.

All values have sensible defaults and can be overridden via environment variables
using the ``HAPF_`` prefix:

  HAPF_LOG_LEVEL            Log level (default: INFO)
  HAPF_LOG_JSON             Emit JSON log lines (default: false)
  HAPF_LOG_FILE             Also log to this file (optional)
  HAPF_MAX_LOG_FILE_BYTES   Rotate the log file at this size (optional)
  HAPF_LOG_BACKUP_COUNT     Rotated log files to keep (optional)
  HAPF_LAYOUT_PASSES        Rank relaxation passes (default: one per node)
  HAPF_LEVEL_WIDTH          Horizontal distance between ranks (default: 280)
  HAPF_LEVEL_HEIGHT         Vertical distance within a rank (default: 120)
  HAPF_LAYOUT_ORIGIN        Offset of the first rank and row (default: 50)
  HAPF_HOST                 Analysis server bind address (default: 127.0.0.1)
  HAPF_PORT                 Analysis server port (default: 8000)
  HAPF_MAX_DOCUMENT_BYTES   Largest document accepted (default: 1 MiB)
  HAPF_DOCUMENT_SUFFIX      File suffix of DSL documents (default: .hapf)
  HAPF_CONFIG_FILE          YAML config file read when --config is not given

Values may also come from a YAML file (``--config``, else ``HAPF_CONFIG_FILE``,
else ``hapf.yaml`` in the working directory); environment variables take
precedence over the file.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hapf_common.analysis import LayoutSpacing

ENV_PREFIX = "HAPF_"
DEFAULT_CONFIG_FILE = "hapf.yaml"
# read when no path is passed; lets server worker processes find the --config file
CONFIG_FILE_ENV = "HAPF_CONFIG_FILE"

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"})


class HapfConfig(BaseSettings):
    """Central HAPF configuration.

    Instantiate with ``HapfConfig()`` to read defaults and any ``HAPF_*``
    environment variable overrides automatically.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    # ── Logging configuration ──────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None
    max_log_file_bytes: Optional[int] = None
    log_backup_count: Optional[int] = None

    # ── Layout configuration ───────────────────────────────────────────────
    layout_passes: Optional[int] = None
    level_width: int = 280
    level_height: int = 120
    layout_origin: int = 50

    # ── Server configuration ───────────────────────────────────────────────
    host: str = "127.0.0.1"
    port: int = 8000
    max_document_bytes: int = 1024 * 1024

    # ── Documents ──────────────────────────────────────────────────────────
    document_suffix: str = ".hapf"

    # ── Validators ─────────────────────────────────────────────────────────

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level={v!r} is not a valid log level. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        level = v.upper()
        return "WARNING" if level == "WARN" else level

    @field_validator("max_log_file_bytes", "log_backup_count")
    @classmethod
    def _non_negative(cls, v: Optional[int], info: ValidationInfo) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"{info.field_name}={v} must be >= 0")
        return v

    @field_validator("layout_passes")
    @classmethod
    def _valid_layout_passes(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"layout_passes={v} must be >= 1")
        return v

    @field_validator("level_width", "level_height", "max_document_bytes")
    @classmethod
    def _positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name}={v} must be > 0")
        return v

    @field_validator("layout_origin")
    @classmethod
    def _valid_origin(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"layout_origin={v} must be >= 0")
        return v

    @field_validator("port")
    @classmethod
    def _valid_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            raise ValueError(f"port={v} is outside the valid port range (1-65535)")
        return v

    @field_validator("document_suffix")
    @classmethod
    def _valid_suffix(cls, v: str) -> str:
        if len(v) < 2 or not v.startswith("."):
            raise ValueError(f"document_suffix={v!r} must start with '.' and name an extension")
        return v

    def layout_spacing(self) -> LayoutSpacing:
        return LayoutSpacing(
            origin=self.layout_origin,
            level_width=self.level_width,
            level_height=self.level_height,
        )


def _read_config_file(path: str) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(path: Optional[str] = None) -> HapfConfig:
    """Build a config from *path* and the environment.

    Without *path*, ``HAPF_CONFIG_FILE`` names the file, falling back to
    ``hapf.yaml`` when present.

    A key set both in the file and as a ``HAPF_*`` environment variable takes
    the environment value. Raises ``pydantic.ValidationError`` for invalid or
    unknown keys and ``yaml.YAMLError`` for a malformed file.
    """
    if path is None:
        path = os.environ.get(CONFIG_FILE_ENV)
    if path is None and os.path.isfile(DEFAULT_CONFIG_FILE):
        path = DEFAULT_CONFIG_FILE
    values: Dict[str, Any] = {}
    if path is not None:
        values = {
            key: value
            for key, value in _read_config_file(path).items()
            if f"{ENV_PREFIX}{str(key).upper()}" not in os.environ
        }
    return HapfConfig(**values)


# ── Module-level singleton ─────────────────────────────────────────────────────

_config: Optional[HapfConfig] = None


def get_config() -> HapfConfig:
    """Return the process-wide config singleton.

    Creates a fresh ``HapfConfig`` on first call (reading env vars).
    Subsequent calls return the cached instance.

    Note: not thread-safe. In multi-threaded contexts, call
    ``load_and_validate_config()`` once during startup before spawning threads.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def load_and_validate_config(path: Optional[str] = None) -> HapfConfig:
    """Build, validate, cache and return the config.

    Raises ``pydantic.ValidationError`` with a clear message if any value is
    invalid. Call this once at CLI startup to surface config errors before any
    document is read.
    """
    global _config
    cfg = load_config(path)
    _config = cfg
    return cfg
