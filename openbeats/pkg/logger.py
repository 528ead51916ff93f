"""
Centralized logging setup.

Two output formats, picked by ``LOG_FORMAT``:

- ``text``: one line per record, colored on a terminal; playback context
  (source, track, mirror) is appended as ``key=value`` pairs.
- ``json``: one JSON object per record with the context as top-level keys.

Verbosity is ``LOG_LEVEL`` alone. Loggers do not propagate to the root
logger, so each module logger carries its own handlers.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..config.config import config

# Record attributes treated as playback context
CONTEXT_FIELDS: Tuple[str, ...] = ("source", "track_id", "mirror")

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if getattr(record, name, None) not in (None, "")}


class LogColors:
    RESET = "\033[0m"
    DIM = "\033[90m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    ALERT = "\033[41m\033[97m"


class ColoredFormatter(logging.Formatter):
    """Text lines with playback context appended; colors only when ``colored``"""

    LEVEL_COLORS = {
        logging.DEBUG: LogColors.DIM,
        logging.INFO: LogColors.CYAN,
        logging.WARNING: LogColors.YELLOW,
        logging.ERROR: LogColors.RED,
        logging.CRITICAL: LogColors.ALERT,
    }

    def __init__(self, colored: bool = True):
        super().__init__(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)
        self.colored = colored

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context_of(record)
        if context:
            line += "  " + " ".join(f"{key}={value}" for key, value in context.items())
        if not self.colored:
            return line

        color = self.LEVEL_COLORS.get(record.levelno, LogColors.RESET)
        line = line.replace(f"| {record.levelname} |", f"| {color}{record.levelname}{LogColors.RESET} |", 1)
        line = line.replace(f"| {record.name} |", f"| {LogColors.BLUE}{record.name}{LogColors.RESET} |", 1)
        return f"{LogColors.DIM}{record.asctime}{LogColors.RESET}{line[len(record.asctime):]}"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(_context_of(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Adds fixed context to every record; per-call ``extra`` wins on conflicts"""

    def process(self, msg: str, kwargs: dict) -> tuple:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def resolve_level(name: str) -> Optional[int]:
    """Numeric level for a level name, None when the name is not a logging level"""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else None


def build_formatter(log_format: str, colored: bool) -> logging.Formatter:
    if log_format == "json":
        return StructuredFormatter()
    return ColoredFormatter(colored=colored)


def setup_logger(
    name: str = config.APP_NAME,
    log_format: Optional[str] = None,
    colored: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure a logger from LOG_LEVEL, LOG_FORMAT and LOG_FILE

    Args:
        name: Logger name
        log_format: "text" or "json" (default: config.LOG_FORMAT)
        colored: Color text output (default: only when stderr is a terminal)
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_format = (log_format or config.LOG_FORMAT).lower()
    if colored is None:
        colored = sys.stderr.isatty()
    level = resolve_level(config.LOG_LEVEL)
    logger.setLevel(level if level is not None else logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(build_formatter(log_format, colored))
    logger.addHandler(console_handler)

    if config.LOG_FILE:
        file_handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(build_formatter(log_format, colored=False))
        logger.addHandler(file_handler)

    logger.propagate = False

    if level is None:
        logger.warning(f"⚠️ Unknown LOG_LEVEL {config.LOG_LEVEL!r}, using INFO")
    return logger


def get_context_logger(name: str, **context) -> ContextLogger:
    """
    Get a logger with contextual information

    Example:
        logger = get_context_logger("openbeats.mirrors", source="ytmusic")
        logger.info("Mirror answered", extra={"mirror": "https://yewtu.be"})
    """
    return ContextLogger(setup_logger(name), context)


# Global logger
logger = setup_logger()
