"""
Logging for the leaderboard service.

``setup_logging()`` runs on import. It installs a single handler on the root
logger that pushes records onto a bounded queue; a background
``QueueListener`` drains the queue into the real handlers, so request
handlers never block on stream or file I/O. When the queue is full the
record is dropped and counted (see ``dropped_log_records()``).

Every record is stamped with the request context bound by ``LogContext``:
``request_id``, ``correlation_id``, ``component`` and ``operation``. Fields
passed as ``extra={...}`` travel with the record and appear under ``extra``
in JSON output.

Output
------
- console: JSON when ``Config.LOG_JSON`` is set (default: production only),
  otherwise text, colored when stdout is a terminal
- file (``LOG_FILE_ENABLED``): JSON lines under ``LOGS_DIR``, rotated at
  midnight UTC
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from leaderboard.core.config.config import Config

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "leaderboard.json.log"
QUEUE_SIZE = 10_000

# Libraries whose INFO output is noise for this service
_QUIET_LOGGERS = ("aiosqlite", "asyncio", "sqlalchemy.engine", "uvicorn.access")

CONTEXT_FIELDS = ("request_id", "correlation_id", "component", "operation")

_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_context: ContextVar[Mapping[str, Optional[str]]] = ContextVar(
    "leaderboard_log_context", default={}
)


# ============================================================================
# Context
# ============================================================================


class LogContext:
    """
    Bind request fields to every record logged inside the block.

    Fields not given are inherited from an enclosing context. When no id is
    supplied one is generated, so every request is traceable.

    Usage::

        async with LogContext(component="api", request_id=header_value) as ctx:
            ...
            response.headers["X-Request-ID"] = ctx.context["request_id"]
    """

    def __init__(
        self,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        outer = _context.get()
        request_id = request_id or correlation_id or outer.get("request_id") or uuid.uuid4().hex[:8]

        self.context: Dict[str, Optional[str]] = {
            "component": component or outer.get("component"),
            "operation": operation or outer.get("operation"),
            "correlation_id": correlation_id or outer.get("correlation_id") or request_id,
            "request_id": request_id,
        }
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get()

        record.correlation_id = context.get("correlation_id") or "N/A"
        record.request_id = context.get("request_id") or record.correlation_id
        record.component = context.get("component") or record.name.partition(".")[0]
        # extra={"operation": ...} on the call takes precedence
        if not hasattr(record, "operation"):
            record.operation = context.get("operation") or "N/A"

        return True


# ============================================================================
# Formatters
# ============================================================================


class ColoredFormatter(logging.Formatter):
    """Text formatter that tints each line by level."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[94m",
        logging.WARNING: "\033[93m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[1;91m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}{self.RESET}" if color else line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; context fields at top level, the rest under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value not in (None, "N/A"):
                payload[field] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue pipeline
# ============================================================================


class DroppingQueueHandler(QueueHandler):
    """QueueHandler that never blocks: a full queue drops the record."""

    def __init__(self, log_queue: "queue.Queue[logging.LogRecord]") -> None:
        super().__init__(log_queue)
        self.dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1


_queue_handler: Optional[DroppingQueueHandler] = None
_listener: Optional[QueueListener] = None


def _level() -> int:
    return getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO)


def _use_json() -> bool:
    if Config.LOG_JSON is None:
        return Config.is_production()
    return Config.LOG_JSON


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if _use_json():
        handler.setFormatter(JSONFormatter())
    elif sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(TEXT_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))
    return handler


def _file_handler() -> logging.Handler:
    logs_dir = Path(Config.LOGS_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        logs_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=1,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging() -> None:
    """Install the queue pipeline on the root logger. No-op if already installed."""
    global _queue_handler, _listener

    if _listener is not None:
        return

    handlers: List[logging.Handler] = [_console_handler()]
    if Config.LOG_FILE_ENABLED:
        handlers.append(_file_handler())

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_SIZE)
    _queue_handler = DroppingQueueHandler(log_queue)
    # Runs in the producing task, where the ContextVar is visible
    _queue_handler.addFilter(ContextFilter())

    _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _listener.start()

    root = logging.getLogger()
    root.setLevel(_level())
    root.addHandler(_queue_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if Config.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={"json": _use_json(), "file_enabled": Config.LOG_FILE_ENABLED},
    )


def shutdown_logging() -> None:
    """Flush queued records and detach the pipeline."""
    global _queue_handler, _listener

    if _listener is None:
        return

    logging.getLogger().removeHandler(_queue_handler)
    _listener.stop()
    for handler in _listener.handlers:
        handler.close()

    _queue_handler = None
    _listener = None


def dropped_log_records() -> int:
    """Records discarded because the log queue was full."""
    return _queue_handler.dropped if _queue_handler is not None else 0


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


setup_logging()
