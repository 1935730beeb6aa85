"""
Proration configuration schema.

Defines the human-authored, reviewable configuration artifact. YAML files
are parsed into these types by ``proration_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass

from proration_kernel.domain.values import Plan


@dataclass(frozen=True)
class EngineSettings:
    """Engine parameter configuration."""

    max_period_iterations: int = 100


@dataclass(frozen=True)
class ProrationConfig:
    """A complete, validated proration configuration set."""

    config_id: str
    version: int
    engine: EngineSettings
    plans: tuple[Plan, ...]
    checksum: str
    description: str = ""

    @property
    def plan_names(self) -> tuple[str, ...]:
        return tuple(plan.name for plan in self.plans)

    def find_plan(self, name: str) -> Plan | None:
        for plan in self.plans:
            if plan.name == name:
                return plan
        return None
