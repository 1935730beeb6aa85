"""
Structured JSON logging for the proration packages.

Every record emitted under the ``proration_kernel`` logger hierarchy is
rendered as one JSON line carrying:

* ``ts``, ``level``, ``logger``, ``message``
* the calculation context bound through ``LogContext`` (correlation id,
  subscription id, scenario, trace id)
* the ``extra={}`` payload of the call, with Decimal amounts, instants and
  billing enums rendered as strings
* ``exc_*`` fields for a logged exception, including the structured
  attributes of ``ProrationKernelError`` subclasses
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

_LOGGER_PREFIX = "proration_kernel"

_CONTEXT_FIELDS = ("correlation_id", "subscription_id", "scenario", "trace_id")

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"proration_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


def _checked(fields: dict[str, str | None]) -> dict[str, str]:
    unknown = sorted(set(fields) - set(_CONTEXT_FIELDS))
    if unknown:
        raise TypeError(f"Unknown log context fields: {', '.join(unknown)}")
    return {name: value for name, value in fields.items() if value is not None}


class LogContext:
    """
    Calculation-scoped log fields, held in context variables.

    ``None`` values are ignored, so callers can pass an optional
    correlation id straight through.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        for name, value in _checked(fields).items():
            _context[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        values = {name: var.get() for name, var in _context.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _context.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Set fields for the duration of the block, then restore the previous values."""
        tokens = [_context[name].set(value) for name, value in _checked(fields).items()]
        try:
            yield
        finally:
            for token in reversed(tokens):
                token.var.reset(token)


# Attributes every LogRecord carries; anything else on a record came from extra={}.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    # Decimal and anything else unknown
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

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

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the proration_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the proration_kernel logger.

    A no-op when a structured handler is already attached.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = handler if handler is not None else logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Detach every handler from the proration_kernel logger (tests only)."""
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
