"""
Logging setup for the hub controller.

Records can carry hub context through ``extra=`` (hub address, port id, raw
frame); the JSON formatter copies it into the output, the text formatter
prefixes the hub address.
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from config import get_settings

CONTEXT_FIELDS = ("hub", "port_id", "frame")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update({
            field: getattr(record, field)
            for field in CONTEXT_FIELDS
            if hasattr(record, field)
        })

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """
    Single-line console output, coloured by level when stderr is a terminal.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self):
        super().__init__()
        self.use_colors = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def _level(self, name: str) -> str:
        if not self.use_colors:
            return f"{name:8}"
        return f"{self.LEVEL_COLORS.get(name, self.RESET)}{name:8}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        hub = getattr(record, "hub", None)
        if hub:
            message = f"[{hub}] {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        origin = f"{record.name}:{record.lineno}"
        return f"{timestamp} | {self._level(record.levelname)} | {origin:36} | {message}"


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format.lower() == "json":
        return JSONFormatter()
    return TextFormatter()


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Install the console (and optional file) handler on the root logger.

    Arguments left as None fall back to the LOG_LEVEL, LOG_FORMAT and
    LOG_FILE settings. Returns the root logger.
    """
    settings = get_settings()
    level = level or settings.log_level
    log_format = log_format or settings.log_format
    log_file = log_file or settings.log_file

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = _build_formatter(log_format)

    handlers = [logging.StreamHandler(sys.stdout)]
    file_error = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            file_error = e

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if file_error is not None:
        root_logger.error(f"Failed to open log file {log_file}: {file_error}")

    # bleak logs every GATT operation at DEBUG
    logging.getLogger("bleak").setLevel(max(numeric_level, logging.INFO))

    root_logger.info(
        f"Logging configured: level={level}, format={log_format}, file={log_file or 'none'}"
    )
    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
