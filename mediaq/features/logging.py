"""
Structured Logging with Job Context.
Correlation-scoped job context, JSON formatter, logging setup.
"""

import json
import logging
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional


@dataclass
class JobContext:
    """Identifiers of the job currently being handled"""

    correlation_id: Optional[str] = None
    media_id: Optional[int] = None
    message_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


job_context: ContextVar[Optional[JobContext]] = ContextVar("job_context", default=None)

_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "exc_info", "exc_text",
    "stack_info", "taskName", "correlation_id", "media_id", "message",
}


@contextmanager
def job_logging_context(
    correlation_id: Optional[str],
    media_id: Optional[int] = None,
    message_id: Optional[str] = None,
) -> Iterator[JobContext]:
    """Bind job identifiers to every log record emitted inside the block."""
    ctx = JobContext(correlation_id=correlation_id, media_id=media_id, message_id=message_id)
    token = job_context.set(ctx)
    try:
        yield ctx
    finally:
        job_context.reset(token)


class ContextFilter(logging.Filter):
    """Copies the current job context onto records for plain-text formats"""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = job_context.get()
        record.correlation_id = ctx.correlation_id if ctx and ctx.correlation_id else "-"
        record.media_id = ctx.media_id if ctx and ctx.media_id is not None else "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def __init__(self, include_traceback: bool = True):
        super().__init__()
        self.include_traceback = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        ctx = job_context.get()
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger_name": record.name,
            "module": record.module,
            "function": record.funcName,
            "line_number": record.lineno,
            "process_id": record.process,
            "job_context": ctx.to_dict() if ctx else None,
        }

        if record.exc_info:
            exc_type, exc_value, exc_traceback = record.exc_info
            exception_data = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
            }
            if self.include_traceback and exc_traceback:
                exception_data["traceback"] = traceback.format_exception(
                    exc_type, exc_value, exc_traceback
                )
            log_data["exception"] = exception_data

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_data["extra_fields"] = extra_fields

        return json.dumps(log_data, default=str)


SIMPLE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[correlation_id=%(correlation_id)s media_id=%(media_id)s] %(message)s"
)


def setup_logging(log_level: str = "INFO", log_format: str = "simple") -> logging.Logger:
    """Configure the root logger with a console handler carrying job context."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    if log_format.lower() == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    root_logger.addHandler(handler)

    # boto's own debug output drowns the worker log
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger
