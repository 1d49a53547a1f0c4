# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging setup for catalogmcp servers.

Everything is written to ``stderr``: in stdio mode ``stdout`` carries the
protocol stream and must never see a log line.  Output is colored text by
default, plain text when ``NO_COLOR`` is set, and one JSON object per line
when ``CATALOGMCP_LOG_JSON`` is truthy.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
import sys
from typing import Any, ClassVar, Final


RESET: Final[str] = "\033[0m"
LOGGER_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "catalogmcp"
ENV_LOG_LEVEL: Final[str] = "CATALOGMCP_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "CATALOGMCP_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys() | {"message", "asctime", "taskName"}
)


class ColoredFormatter(logging.Formatter):
    """Text formatter that tints the level and logger name."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[1;31m",
        "CRITICAL": "\033[1;35m",
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname, name = record.levelname, record.name
        record.levelname = f"{self.LEVEL_COLORS.get(levelname, '')}{levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = levelname, name


class StructuredJSONFormatter(logging.Formatter):
    """Render records as JSON; ``extra`` fields land under ``context``."""

    def __init__(self, serializer: JsonSerializer | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _dump_json

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        if context:
            payload["context"] = context
        return self._serializer(payload)


class CatalogLogHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marker handler so repeated setup calls stay idempotent."""


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def _env_flag(key: str) -> bool:
    value = os.getenv(key)
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _installed_handler(root: logging.Logger) -> CatalogLogHandler | None:
    return next((h for h in root.handlers if isinstance(h, CatalogLogHandler)), None)


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Attach the catalogmcp handler to the root logger.

    Args:
        level: Log level; defaults to ``CATALOGMCP_LOG_LEVEL`` then ``INFO``.
        use_json: Emit JSON lines; defaults to ``CATALOGMCP_LOG_JSON``.
        use_color: Colorize text output; off under ``NO_COLOR`` or JSON.
        json_serializer: Replacement for :func:`json.dumps` (e.g. ``orjson``).
        fmt: Format string for text output.
        datefmt: Date format for timestamps.
        force: Replace a handler installed by an earlier call.
    """
    root = logging.getLogger()
    existing = _installed_handler(root)
    if existing is not None:
        if not force:
            return
        root.removeHandler(existing)
        existing.close()

    resolved_level = _resolve_level(level)
    resolved_json = _env_flag(ENV_LOG_JSON) if use_json is None else use_json
    if use_color is None:
        use_color = not resolved_json and not os.getenv(ENV_NO_COLOR)

    formatter: logging.Formatter
    if resolved_json:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=datefmt)
    elif use_color:
        formatter = ColoredFormatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)
    else:
        formatter = logging.Formatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)

    handler = CatalogLogHandler(sys.stderr)
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.setLevel(resolved_level)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, installing the default handler on first use."""
    if _installed_handler(logging.getLogger()) is None:
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "CatalogLogHandler",
    "ColoredFormatter",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
