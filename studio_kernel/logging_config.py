"""
Structured JSON logging (``studio_kernel.logging_config``).

Responsibility
--------------
Every logger under ``studio_kernel`` writes one JSON object per line:

* ``ts``, ``level``, ``logger``, ``message`` (a snake_case event name)
* the studio context in force when the record was emitted
  (``office_id``, ``budget_id``, ``project_id``, ``actor_id``,
  ``correlation_id``)
* the event's ``extra`` fields, made JSON-safe with ``to_primitive``
* for failures, an ``error`` object with the exception type, message,
  machine-readable ``code`` and structured attributes

Context
-------
Engines never receive record ids.  Services bind them around the work
they delegate, so an engine's ``STUDIO_ENGINE_TRACE`` line carries the
budget or project it priced, scheduled or split::

    with LogContext.bind(budget_id=budget.id):
        installments = splitter.generate(...)
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from studio_kernel.domain.serialization import to_primitive

CONTEXT_FIELDS = ("correlation_id", "office_id", "budget_id", "project_id", "actor_id")

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("studio_log_context", default=_EMPTY)


class LogContext:
    """Ids describing what the current block of work is about."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Layer ``fields`` over the current context for the ``with`` block.

        Values are stringified (UUIDs included); ``None`` leaves the outer
        value in place.  Unknown field names raise ``ValueError``.
        """
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise ValueError(f"Unknown log context fields: {', '.join(unknown)}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _context.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _context.reset(token)


_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _jsonable(value: Any) -> Any:
    try:
        return to_primitive(value)
    except TypeError:
        return str(value)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    code = getattr(exc, "code", None)
    if code is not None:
        error["code"] = code
    attributes = {
        k: v for k, v in vars(exc).items() if not k.startswith("_") and k != "code"
    }
    if attributes:
        error["attributes"] = attributes
    return error


class StructuredFormatter(logging.Formatter):
    """One JSON line per record; context keys never override ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)
        for key, value in _context.get().items():
            payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_payload(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_jsonable)


_ROOT = "studio_kernel"
_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger ``studio_kernel.<name>``; ``name`` follows the package path (``engines.pricing``)."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``studio_kernel`` tree.

    Only the first call has an effect until ``reset_logging``.  ``level``
    accepts a number or a name such as ``"DEBUG"``.
    """
    global _configured
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name!r}")

    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False
    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Detach handlers and forget the configuration; used between tests."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
