"""Forward projection of SLA breach instants for still-open issues."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from jira_sla.core.models import Anchors, StateTimelineEvent
from jira_sla.core.status import is_paused

from .calendar import CalendarPolicy
from .durations import DurationSummary
from .tiers import SLATargets
from .timeline import current_state


@dataclass(frozen=True, slots=True)
class BreachProjection:
    reaction_at: datetime | None = None
    resolution_at: datetime | None = None


def _project(policy: CalendarPolicy, now: datetime, target: float | None, consumed: float) -> datetime | None:
    if target is None:
        return None
    remaining = target - consumed
    if remaining <= 0:
        return None
    return policy.add(now, remaining)


def project_breaches(
    events: list[StateTimelineEvent],
    anchors: Anchors,
    summary: DurationSummary,
    targets: SLATargets,
    policy: CalendarPolicy,
    now: datetime,
) -> BreachProjection:
    """Project when the remaining reaction/resolution allowance runs out.

    Reaction is projected while the queue clock runs (queue entry set, work
    not started). Resolution is projected only while work runs: work started,
    not completed, and the latest state not paused. An incomplete issue whose
    work never started has no running resolution clock (resolution minutes
    only accrue from work start), so it gets no resolution projection. An
    exhausted allowance produces no projection.
    """
    reaction_at = None
    if anchors.queue_entry is not None and anchors.work_start is None:
        reaction_at = _project(policy, now, targets.reaction, summary.reaction_minutes)

    resolution_at = None
    if anchors.work_start is not None and anchors.completion is None:
        latest = current_state(events)
        paused = latest is not None and is_paused(latest.status, latest.dependency)
        if not paused:
            resolution_at = _project(policy, now, targets.resolution, summary.resolution_minutes)

    return BreachProjection(reaction_at=reaction_at, resolution_at=resolution_at)
