"""
Structured logging for the royalty ledger.

Two output formats:
- JSON lines for log aggregation (LOG_FORMAT=json)
- Colored console output for development (default)

Per-call context (caller, block height, agreement id) can be attached with
LoggingContext and is included in every record emitted inside it.
"""

import json
import logging
import os
import sys
import threading
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRIBUTES = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "exc_info",
    "exc_text",
    "thread",
    "threadName",
    "message",
    "taskName",
})

_call_context = threading.local()


def set_call_context(**kwargs) -> None:
    """Attach values to every log record on this thread."""
    if not hasattr(_call_context, "data"):
        _call_context.data = {}
    _call_context.data.update(kwargs)


def clear_call_context() -> None:
    _call_context.data = {}


def get_call_context() -> dict[str, Any]:
    return getattr(_call_context, "data", {})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    {"timestamp": "...", "level": "INFO", "logger": "royalty_ledger",
     "message": "Created royalty agreement 0 ...", "context": {"caller": "..."}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_entry["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        context = get_call_context()
        if context:
            log_entry["context"] = dict(context)

        log_entry.update(_extra_fields(record))
        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable, colored single-line output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        msg = f"{color}{timestamp} {record.levelname[0]} [{record.name}]{self.RESET} {record.getMessage()}"

        context = get_call_context()
        if context:
            ctx_str = " ".join(f"{k}={v}" for k, v in context.items())
            msg += f" {color}({ctx_str}){self.RESET}"

        extras = _extra_fields(record)
        if extras:
            msg += " [" + ", ".join(f"{k}={v}" for k, v in extras.items()) + "]"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON lines; defaults to LOG_FORMAT=json
        log_file: Optional file that always receives JSON lines
    """
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggingContext:
    """
    Temporarily attach call context to log records.

    Usage:
        with LoggingContext(caller="ST1TEST", block_height=50):
            contract.distribute_royalty(ctx, 0, 10000)
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self.previous_context: dict[str, Any] = {}

    def __enter__(self):
        self.previous_context = get_call_context().copy()
        set_call_context(**self.context)
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        clear_call_context()
        if self.previous_context:
            set_call_context(**self.previous_context)
        return False
