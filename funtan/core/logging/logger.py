"""
Funtan Logging Subsystem

Purpose
-------
Structured, non-blocking logging for the engine.

- Every record carries the context of the engine call it was emitted from
  (`player_id`, `server_id`, `operation`, `correlation_id`), bound with
  `LogContext` and held in a ContextVar so concurrent calls never mix.
- Handlers sit behind a QueueHandler/QueueListener pair; formatting and I/O
  happen on the listener thread, never on the event loop.
- Console output is JSON in production and plain or colored text otherwise.
  A rotating JSON file is optional (`LOG_TO_FILE`).

Importing this module configures nothing. `setup_logging()` is called by
`GameEngine.build` (or by the host application) and is idempotent.
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from funtan.core.config.config import Config

CONTEXT_FIELDS = ("player_id", "server_id", "operation", "correlation_id")

_UNSET = "-"

_log_context: ContextVar[Mapping[str, str]] = ContextVar("funtan_log_context", default={})

# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("funtan", logging.INFO, __file__, 0, "", (), None))
) | {"message", "asctime", "taskName"}


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True)
class LogSettings:
    level: int
    as_json: bool
    colored: bool
    to_file: bool
    logs_dir: Path
    environment: str

    file_name: str = "funtan.json.log"
    file_backups: int = 7
    queue_size: int = 10_000
    line_format: str = "%(asctime)s %(levelname)-8s %(name)s [%(operation)s] %(message)s"

    @classmethod
    def from_config(cls) -> "LogSettings":
        environment = str(Config.ENVIRONMENT).lower()
        level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
        json_flag = Config.LOG_JSON
        as_json = environment == "production" if json_flag is None else bool(json_flag)
        return cls(
            level=level if isinstance(level, int) else logging.INFO,
            as_json=as_json,
            colored=not as_json and sys.stdout.isatty(),
            to_file=bool(Config.LOG_TO_FILE),
            logs_dir=Path(Config.LOGS_DIR),
            environment=environment,
        )


# ============================================================================
# Filter & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Stamp the bound engine context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for field in CONTEXT_FIELDS:
            # An explicit extra={...} value wins.
            if getattr(record, field, None) is None:
                setattr(record, field, context.get(field, _UNSET))
        return True


class ConsoleFormatter(logging.Formatter):
    _LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def __init__(self, fmt: str, colored: bool) -> None:
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")
        self._colored = colored

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        if not self._colored:
            return line
        color = self._LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{line}\033[0m" if color else line


class JSONFormatter(logging.Formatter):
    """One JSON object per record: core fields, bound context, then extras."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = {
            field: getattr(record, field)
            for field in CONTEXT_FIELDS
            if getattr(record, field, _UNSET) not in (_UNSET, None)
        }
        if context:
            payload["context"] = context

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class _DroppingQueueHandler(QueueHandler):
    """Never block the caller: a full queue drops the record."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            sys.stderr.write("funtan: log queue full, record dropped\n")


# ============================================================================
# Setup / Teardown
# ============================================================================

_listener: Optional[QueueListener] = None
_queue_handler: Optional[_DroppingQueueHandler] = None


def _handlers(settings: LogSettings) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        JSONFormatter()
        if settings.as_json
        else ConsoleFormatter(settings.line_format, settings.colored)
    )
    handlers: list[logging.Handler] = [console]

    if settings.to_file:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        rotating = TimedRotatingFileHandler(
            settings.logs_dir / settings.file_name,
            when="midnight",
            backupCount=settings.file_backups,
            encoding="utf-8",
            utc=True,
        )
        rotating.setFormatter(JSONFormatter())
        handlers.append(rotating)

    for handler in handlers:
        handler.setLevel(settings.level)
    return handlers


def setup_logging(settings: Optional[LogSettings] = None) -> bool:
    """
    Route the `funtan` logger hierarchy through a background queue.

    Returns False when logging was already set up. Only the `funtan`
    logger gets a handler; records still propagate to whatever the host
    configured on the root logger.
    """
    global _listener, _queue_handler

    if _listener is not None:
        return False

    settings = settings or LogSettings.from_config()

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(settings.queue_size)
    _listener = QueueListener(log_queue, *_handlers(settings), respect_handler_level=True)
    _listener.start()

    _queue_handler = _DroppingQueueHandler(log_queue)
    _queue_handler.addFilter(ContextFilter())

    package_logger = logging.getLogger("funtan")
    package_logger.setLevel(settings.level)
    package_logger.addHandler(_queue_handler)

    atexit.register(shutdown_logging)

    package_logger.info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "level": logging.getLevelName(settings.level),
            "json": settings.as_json,
            "to_file": settings.to_file,
        },
    )
    return True


def shutdown_logging() -> None:
    """Flush queued records and detach the handler. Safe to call twice."""
    global _listener, _queue_handler

    if _listener is None:
        return

    _listener.stop()
    for handler in _listener.handlers:
        handler.close()
    _listener = None

    if _queue_handler is not None:
        package_logger = logging.getLogger("funtan")
        package_logger.removeHandler(_queue_handler)
        _queue_handler = None

    atexit.unregister(shutdown_logging)


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind engine context for the duration of a block (sync or async).

    Fields left as None keep the value of an enclosing context, so nested
    blocks only add detail. A correlation id is generated for the outermost
    block.

    >>> async with LogContext(player_id="42", operation="hunt"):
    ...     await engine.hunt("42")
    """

    def __init__(
        self,
        player_id: Optional[Any] = None,
        server_id: Optional[Any] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self._fields = {
            "player_id": player_id,
            "server_id": server_id,
            "operation": operation,
            "correlation_id": correlation_id,
        }
        self._token: Optional[Token[Mapping[str, str]]] = None

    def __enter__(self) -> "LogContext":
        merged = dict(_log_context.get())
        merged.update({k: str(v) for k, v in self._fields.items() if v is not None})
        merged.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
