"""
Logging setup for eovtrans.

Records carry the geodetic context they were emitted in: request id,
source and target frame, pipeline stage and correction grid. Code binds
that context with `log_context()`, which is backed by a context variable
so concurrent requests never see each other's fields, and `ContextFilter`
stamps it onto every record that reaches a handler. The console shows
the context as a compact suffix; the optional log file holds one JSON
object per line.
"""

import json
import logging
import logging.handlers
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from eovtrans.core.config import settings

CONTEXT_FIELDS = (
    "request_id",
    "source_frame",
    "target_frame",
    "stage",
    "grid_name",
    "epoch",
    "duration_ms",
)

# Libraries that log per call below WARNING
QUIET_LOGGERS = ("rasterio", "pyproj", "uvicorn.access")

_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_log_context: ContextVar[Dict[str, Any]] = ContextVar("eovtrans_log_context", default={})


def current_log_context() -> Dict[str, Any]:
    """Fields bound in the current context."""
    return dict(_log_context.get())


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """
    Bind fields to every record logged inside the block.

    Nested blocks extend the outer fields. None values are not bound, so
    optional ids can be passed through unconditionally.

    Example:
        with log_context(source_frame="ETRF2000", target_frame="EOV"):
            logger.info("Transforming batch")
    """
    bound = {**_log_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _log_context.set(bound)
    try:
        yield bound
    finally:
        _log_context.reset(token)


class ContextFilter(logging.Filter):
    """Copy bound context fields onto records without overriding `extra=` values."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class ConsoleFormatter(logging.Formatter):
    """
    Text formatter that appends the geodetic context.

    Example line:
        WARNING | 10:42:07 | eovtrans.core.geodesy.transformer | Point outside
        grid coverage [ETRF2000->EOV stage=etrs89_to_hd72 grid_name=etrs2eov_notowgs.gsb]
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line

        parts = []
        source = context.pop("source_frame", None)
        target = context.pop("target_frame", None)
        if source or target:
            parts.append(f"{source or '?'}->{target or '?'}")
        duration_ms = context.pop("duration_ms", None)
        parts.extend(f"{key}={value}" for key, value in context.items())
        if duration_ms is not None:
            parts.append(f"{float(duration_ms):.1f}ms")
        return f"{line} [{' '.join(parts)}]"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context fields are top-level keys; any other `extra=` values are
    grouped under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_record_context(record))

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and key not in CONTEXT_FIELDS
        }
        if extra:
            data["extra"] = extra
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


def resolve_log_level(level_name: Optional[str] = None) -> int:
    """
    Numeric log level for a level name.

    Without a name, `settings.log_level` is used, else DEBUG in development
    and INFO elsewhere. Unknown names resolve to INFO.
    """
    name = level_name or settings.log_level
    if not name:
        name = "DEBUG" if settings.environment == "development" else "INFO"
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    enable_console: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Level name; see `resolve_log_level` for the default
        log_file: Rotating JSON log file, if any
        enable_console: Whether to log to stdout
    """
    level = resolve_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handlers = []
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            ConsoleFormatter(
                "%(levelname)s | %(asctime)s | %(name)s | %(message)s", datefmt="%H:%M:%S"
            )
        )
        handlers.append(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    context_filter = ContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging initialized at {logging.getLevelName(level)} "
        f"({settings.environment}), log file: {log_file or 'none'}"
    )
