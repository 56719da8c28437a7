"""
Structured logging with JSON formatting and scoring-pass id support.

A scoring pass sets a pass id in a context variable so every log line
emitted while reconciling one declared result can be correlated.
"""
import json
import logging
import sys
from datetime import datetime
from typing import Any
from contextvars import ContextVar

pass_id_var: ContextVar[str] = ContextVar("pass_id", default="")

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pass_id": pass_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human readable output for local development."""

    def format(self, record: logging.LogRecord) -> str:
        message = f"[{record.levelname}] {record.name}: {record.getMessage()}"
        pass_id = pass_id_var.get()
        if pass_id:
            message += f" | pass_id={pass_id}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    handler: logging.Handler | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name
        json_output: JSON lines when True, console format otherwise
        handler: Optional custom handler; defaults to a stdout StreamHandler
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)

    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(handler)

    # Driver chatter
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def set_pass_id(pass_id: str) -> Any:
    """Set the scoring-pass id; returns the token for `clear_pass_id`."""
    return pass_id_var.set(pass_id)


def clear_pass_id(token: Any) -> None:
    pass_id_var.reset(token)
