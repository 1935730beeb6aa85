"""
Configuration Loader (``proration_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``proration_config.schema`` dataclasses.  The single public entry point for
runtime config is ``proration_config.get_active_config()``.

Invariants enforced
-------------------
* Every structural problem raises ``ConfigurationError`` naming the source
  file; there are no silent defaults for required fields.
* Every parsed object is a frozen dataclass.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys, bad types, duplicate plans, negative prices, unknown cycles
  or unknown engine settings  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from proration_config.schema import EngineSettings, ProrationConfig
from proration_engines.validation import validate_plan_prices
from proration_kernel.domain.values import Plan
from proration_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_engine_settings(data: dict[str, Any], source: str) -> EngineSettings:
    """Parse the ``engine`` section; absent keys take the schema defaults."""
    unknown = sorted(set(data) - {f.name for f in fields(EngineSettings)})
    if unknown:
        raise ConfigurationError(source, f"unknown engine settings: {', '.join(unknown)}")
    settings = EngineSettings(**data)
    iterations = settings.max_period_iterations
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise ConfigurationError(source, "max_period_iterations must be a positive integer")
    return settings


def parse_plan(data: dict[str, Any], source: str) -> Plan:
    """Parse one plan catalog entry."""
    try:
        plan = Plan(
            name=str(data["name"]),
            price=str(data["price"]),
            cycle=data.get("cycle", "monthly"),
        )
    except KeyError as exc:
        raise ConfigurationError(source, f"plan is missing {exc.args[0]!r}") from exc
    except ValueError as exc:
        raise ConfigurationError(source, str(exc)) from exc
    errors = validate_plan_prices(plan)
    if errors:
        raise ConfigurationError(source, errors[0])
    return plan


def parse_config(data: dict[str, Any], source: str) -> ProrationConfig:
    """
    Parse a ``ProrationConfig`` from a root.yaml dict.

    Preconditions:
        - ``data`` contains ``config_id``, ``version`` and ``plans``.
    Raises:
        ConfigurationError: on any structural problem.
    """
    for key in ("config_id", "version", "plans"):
        if key not in data:
            raise ConfigurationError(source, f"missing required key {key!r}")

    plans = tuple(parse_plan(entry, source) for entry in data["plans"] or ())
    names = [plan.name for plan in plans]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigurationError(source, f"duplicate plan names: {', '.join(duplicates)}")

    return ProrationConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        engine=parse_engine_settings(data.get("engine") or {}, source),
        plans=plans,
        checksum=compute_checksum(data),
        description=str(data.get("description", "")),
    )


def load_config_file(path: Path) -> ProrationConfig:
    """Load and parse a configuration set's root.yaml."""
    return parse_config(load_yaml_file(path), str(path))
