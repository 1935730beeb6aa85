"""
proration_engines.tracer -- Engine invocation tracer emitting PRORATION_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging.  The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected inputs), and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; does not introduce I/O into engines.

Invariants enforced:
    - Replay safety: fingerprint computation is deterministic --
      _canonicalize produces stable string representations of datetimes,
      Decimals, Enums, dataclasses and containers; dict keys are sorted;
      the hash is SHA-256 truncated to 16 hex chars.
    - Engine purity: the decorator only reads arguments and emits a log
      record; it does not mutate inputs or inject side effects.

Failure modes:
    - Fingerprint fields that were not passed are recorded as "null".

Usage:
    from proration_engines.tracer import traced_engine

    @traced_engine("proration", "1.0", fingerprint_fields=("plan",))
    def compute_service_end(cancel_date, current_period_end, cycle, anchor_day, plan):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from proration_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting.

    Postconditions:
        Returns a deterministic string for None, Enum, Decimal, int, str,
        date/datetime (ISO format), dataclass instances (field order),
        dict (sorted keys) and list/tuple (order-preserved).  Unknown types
        fall back to ``str(value)``.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (Decimal, int)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = dataclasses.fields(value)
        return "{" + ",".join(
            f"{f.name}:{_canonicalize(getattr(value, f.name))}" for f in fields
        ) + "}"
    if isinstance(value, dict):
        items = sorted(value.items())
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """Compute a deterministic SHA-256 fingerprint of selected input fields.

    Only the fields listed in fingerprint_fields are included. Missing
    fields are recorded as "null". The result is a 16-char hex digest prefix.
    """
    parts: list[str] = []
    for field in fingerprint_fields:
        parts.append(f"{field}={_canonicalize(arguments.get(field))}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits PRORATION_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "periods").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash. Positional and keyword arguments are both
            resolved against the wrapped function's signature.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "PRORATION_ENGINE_TRACE",
                extra={
                    "trace_type": "PRORATION_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
