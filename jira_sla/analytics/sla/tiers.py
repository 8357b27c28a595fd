"""Tier resolution, target lookup, and compliance evaluation."""

from __future__ import annotations

from dataclasses import dataclass

from jira_sla.core.config import (
    COMPLIANCE_EPSILON,
    DEFAULT_PRIORITY_TIERS,
    DEFAULT_REACTION_MINUTES,
    FALLBACK_RESOLUTION_MINUTES,
    FALLBACK_TIER,
    TASK_ISSUE_TYPE,
    TASK_RESOLUTION_MINUTES,
)
from jira_sla.core.sla_config import SLAConfig
from jira_sla.core.status import same_label


@dataclass(frozen=True, slots=True)
class SLATargets:
    # None means unconstrained (always compliant)
    reaction: float | None
    resolution: float


def resolve_tier(priority: str | None, config: SLAConfig) -> str:
    """Map a priority name to its SLA tier.

    Lookup order: the configured map, the built-in default map, then the
    fallback tier. Matching is case-insensitive.
    """
    key = (priority or "").strip().lower()
    if not key:
        return FALLBACK_TIER
    configured = {k.strip().lower(): v for k, v in config.priorities.items()}
    if key in configured:
        return configured[key]
    return DEFAULT_PRIORITY_TIERS.get(key, FALLBACK_TIER)


def is_task(issue_type: str | None) -> bool:
    return same_label(issue_type, TASK_ISSUE_TYPE)


def reaction_target(tier: str, config: SLAConfig) -> float:
    if tier in config.reaction_by_tier:
        return config.reaction_by_tier[tier]
    if config.reaction_flat is not None:
        return config.reaction_flat
    return DEFAULT_REACTION_MINUTES


def resolution_target(tier: str, config: SLAConfig) -> float:
    return config.resolution_by_tier.get(tier, FALLBACK_RESOLUTION_MINUTES)


def resolve_targets(tier: str, issue_type: str | None, config: SLAConfig) -> SLATargets:
    if is_task(issue_type):
        return SLATargets(reaction=None, resolution=TASK_RESOLUTION_MINUTES)
    return SLATargets(reaction=reaction_target(tier, config), resolution=resolution_target(tier, config))


def is_compliant(actual: float, target: float | None, epsilon: float = COMPLIANCE_EPSILON) -> bool:
    if target is None:
        return True
    return actual <= target + epsilon
