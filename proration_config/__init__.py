"""
proration_config -- single public entrypoint for proration configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.  YAML loading is internal tooling (``proration_config.loader``).

Architecture position:
    Configuration -- YAML-driven engine parameters and plan catalog.
    Sits above ``proration_kernel`` / ``proration_engines`` and below
    ``proration_services``.  The kernel and engines MUST NEVER import
    ``proration_config``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ConfigurationError`` -- the set's root.yaml is structurally invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PRORATION_CONFIG_TRACE`` log entry with the config_id, version,
    checksum and plan count, tying each calculation back to the exact
    configuration that governed it.
"""

from __future__ import annotations

from pathlib import Path

from proration_config.loader import load_config_file
from proration_config.schema import EngineSettings, ProrationConfig
from proration_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    name: str = "default",
    config_dir: Path | None = None,
) -> ProrationConfig:
    """The ONLY public configuration entrypoint.

    Args:
        name: Configuration set name (a subdirectory holding ``root.yaml``).
        config_dir: Override path to the configuration sets directory.
            Defaults to proration_config/sets/.

    Raises:
        FileNotFoundError: If the named set has no root.yaml.
        ConfigurationError: If the set fails structural validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    root_file = sets_dir / name / "root.yaml"
    if not root_file.exists():
        raise FileNotFoundError(f"No proration configuration set at {root_file}")

    config = load_config_file(root_file)

    _logger.info(
        "PRORATION_CONFIG_TRACE",
        extra={
            "trace_type": "PRORATION_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "plan_count": len(config.plans),
            "max_period_iterations": config.engine.max_period_iterations,
        },
    )

    return config


__all__ = [
    "EngineSettings",
    "ProrationConfig",
    "get_active_config",
]
