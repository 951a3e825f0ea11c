"""
Structured JSON logging for the invoicing kernel, engines and services.

Every record is one JSON object per line::

    {"ts": ..., "level": "INFO", "logger": "invoicing_kernel.services.payment_workflow",
     "message": "payment_submission_completed", "document_id": "INV-7",
     "customer_id": "CUST-1", "amount_applied": "100.000", "duration_ms": 1.2}

The envelope comes first, then the bound document context, then the
record's ``extra`` fields, then exception details when ``exc_info`` is set.
Amounts travel as strings so no float ever enters a log line.
"""

__all__ = [
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
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

_NAMESPACE = "invoicing_kernel"

_EMPTY: Mapping[str, str] = MappingProxyType({})


class LogContext:
    """
    The document a unit of work is about, attached to every log line.

    Held in a single ContextVar as an immutable snapshot, so threads and
    asyncio tasks each see their own document and customer. Only the names
    in ``FIELDS`` may be bound; anything else is a programming error.
    """

    FIELDS = ("correlation_id", "document_id", "customer_id", "actor_id")

    _current: ContextVar[Mapping[str, str]] = ContextVar("invoicing_log_context", default=_EMPTY)

    @classmethod
    def _merged(cls, fields: Mapping[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = dict(cls._current.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Update the given fields for the rest of the current context; None leaves a field as is."""
        cls._current.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._current.get())

    @classmethod
    def clear(cls) -> None:
        cls._current.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a ``with`` block, then restore the previous snapshot."""
        token = cls._current.set(cls._merged(fields))
        try:
            yield cls
        finally:
            cls._current.reset(token)


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # Money and other value objects render through __str__ ("346.100 TND")
    return str(value)


# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # InvoicingKernelError subclasses expose what went wrong as attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Renders a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger named ``invoicing_kernel.<name>``, e.g. ``get_logger("engines.totals")``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_configured = False
_configure_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Route the ``invoicing_kernel`` hierarchy to one JSON handler.

    Only the first call has an effect until ``reset_logging()``. ``level``
    takes a number or a name such as ``"DEBUG"``. Records do not reach the
    root logger, so a host application's own handlers never print them twice.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    namespace = logging.getLogger(_NAMESPACE)
    namespace.setLevel(level.upper() if isinstance(level, str) else level)
    namespace.propagate = False
    namespace.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging()``. For tests."""
    global _configured
    with _configure_lock:
        _configured = False
    namespace = logging.getLogger(_NAMESPACE)
    namespace.handlers.clear()
    namespace.setLevel(logging.WARNING)
    namespace.propagate = True
