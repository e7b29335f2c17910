"""Observability utilities: structured log context and the progress log."""

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from .logging_config import setup_logger


def _new_batch_id() -> str:
    return f"batch_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class LogContext:
    """Identifies the batch and operation a log line belongs to."""

    correlation_id: str = field(default_factory=_new_batch_id)
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        return replace(self, operation=operation, metadata=dict(self.metadata))

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **kwargs})

    def render(self, message: str, extra: Dict[str, Any]) -> str:
        """Prefix ``message`` with operation and batch id, suffix the metadata."""
        rendered = f"[{self.correlation_id}] {message}"
        if self.operation:
            rendered = f"[{self.operation}] {rendered}"
        return _with_fields(rendered, {**self.metadata, **extra})


def _with_fields(message: str, fields: Dict[str, Any]) -> str:
    if not fields:
        return message
    return f"{message} ({', '.join(f'{k}={v}' for k, v in fields.items())})"


class StructuredLogger:
    """Logger that renders a LogContext into every message."""

    def __init__(self, name: str, level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        message: str,
        context: Optional[LogContext],
        fields: Dict[str, Any],
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if context is not None:
            text = context.render(message, fields)
        else:
            text = _with_fields(message, fields)
        self._logger.log(level, text)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, context, kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.INFO, message, context, kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, context, kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, context, kwargs)

    def critical(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, context, kwargs)


SUCCESS_PREFIX = "SUCCESS:"
FAILURE_PREFIX = "FAILED:"


class ProgressLog:
    """Append-only, line-oriented progress log for one batch.

    Lines are kept in order, mirrored to ``logger`` and pushed to an optional
    callback. Safe to write from upload worker threads.
    """

    def __init__(
        self,
        logger: Any = None,
        context: Optional[LogContext] = None,
        on_line: Optional[Callable[[str], None]] = None,
    ):
        self._lines: List[str] = []
        self._lock = threading.Lock()
        self._logger = logger
        self._context = context
        self._on_line = on_line

    def _append(self, line: str) -> None:
        # Callback runs under the lock so callers see lines in log order
        with self._lock:
            self._lines.append(line)
            if self._on_line is not None:
                self._on_line(line)

    def write(self, line: str) -> None:
        self._append(line)
        if self._logger is not None:
            self._logger.info(line, self._context)

    def success(self, message: str) -> None:
        self.write(f"{SUCCESS_PREFIX} {message}")

    def failure(self, message: str) -> None:
        line = f"{FAILURE_PREFIX} {message}"
        self._append(line)
        if self._logger is not None:
            self._logger.error(line, self._context)

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)
