"""structlog setup for the auth library.

Events go through stdlib logging so host apps keep control of handlers.
Configured from the environment via LoggingSettings:

- LOG_FORMAT: "json", "console", or unset (console).
- LOG_LEVEL: standard level name, INFO by default.
- LOG_DIR: optional directory for a timestamped log file.

Credential material is masked before rendering; see SENSITIVE_KEYS.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
REDACTED = "[REDACTED]"
SENSITIVE_KEYS = frozenset({"password", "password_hash", "new_password", "confirm_password", "token"})

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingSettings(BaseSettings):
    model_config = {"env_prefix": "LOG_"}

    format: str = ""
    level: str = "INFO"
    dir: str | None = None

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console", ""):
            msg = f"Invalid LOG_FORMAT={value!r}. Must be 'json', 'console', or unset."
            raise ValueError(msg)
        return value

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in _LEVEL_NAMES:
            msg = f"Invalid LOG_LEVEL={value!r}. Must be one of {', '.join(_LEVEL_NAMES)}."
            raise ValueError(msg)
        return value

    @property
    def json_mode(self) -> bool:
        return self.format == "json"

    @property
    def level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render Enum values (error codes, strength tiers) as their plain value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, dict):
            event_dict[key] = {k: v.value if isinstance(v, Enum) else v for k, v in value.items()}
    return event_dict


def _redact(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, dict):
        return {k: REDACTED if k in SENSITIVE_KEYS else _redact(v) for k, v in value.items()}
    return value


def _redact_sensitive(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask credential material at any depth of the event dict."""
    for key, value in event_dict.items():
        event_dict[key] = REDACTED if key in SENSITIVE_KEYS else _redact(value)
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _renderer_formatter(*, json_mode: bool, colors: bool) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _open_log_file(log_dir: Path | str, *, json_mode: bool) -> tuple[logging.Handler, Path]:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    handler = logging.FileHandler(path)
    handler.setFormatter(_renderer_formatter(json_mode=json_mode, colors=False))
    return handler, path


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
    settings: LoggingSettings | None = None,
) -> Path | None:
    """Configure structlog and the root logger.

    ``log_dir`` (or LOG_DIR) adds a file handler next to stdout; the file is
    skipped under pytest. Returns the log file path, or None when no file was
    opened. Calling again replaces the handlers from the previous call.
    """
    settings = settings or LoggingSettings()
    log_dir = log_dir if log_dir is not None else settings.dir

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            _redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.setLevel(level if level is not None else settings.level_number)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_renderer_formatter(json_mode=settings.json_mode, colors=sys.stdout.isatty()))
    root.addHandler(console)

    if log_dir is None or _is_test():
        return None

    file_handler, path = _open_log_file(log_dir, json_mode=settings.json_mode)
    root.addHandler(file_handler)
    return path
