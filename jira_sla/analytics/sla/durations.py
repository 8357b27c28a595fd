"""Duration and breakdown accumulation over a reconstructed timeline."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from jira_sla.core.config import BREAKDOWN_NOISE_MINUTES
from jira_sla.core.models import Anchors, StateTimelineEvent
from jira_sla.core.status import is_paused

from .calendar import CalendarPolicy


@dataclass(slots=True)
class DurationSummary:
    breakdown: dict[str, float] = field(default_factory=dict)
    reaction_minutes: float = 0.0
    pause_minutes: float = 0.0
    resolution_minutes: float = 0.0
    gross_resolution_minutes: float = 0.0


def segment_label(event: StateTimelineEvent) -> str:
    return event.dependency or event.status


def _clean_breakdown(raw: dict[str, float]) -> dict[str, float]:
    return {label: round(minutes, 2) for label, minutes in raw.items() if minutes > BREAKDOWN_NOISE_MINUTES}


def accumulate(
    events: list[StateTimelineEvent],
    anchors: Anchors,
    policy: CalendarPolicy,
    now: datetime,
) -> DurationSummary:
    """Walk the timeline and accumulate calendar-aware durations.

    Parameters
    ----------
    events : list[StateTimelineEvent]
        Ordered timeline (first event at creation).
    anchors : Anchors
        Lifecycle anchors from the same reconstruction.
    policy : CalendarPolicy
        Calendar strategy selected for the issue.
    now : datetime
        Evaluation instant; the timeline boundary when there is no completion.

    Returns
    -------
    DurationSummary
        Breakdown per status/dependency label plus reaction, pause, and net
        resolution minutes.
    """
    now = policy.localize(now)
    boundary = anchors.completion or now
    raw: defaultdict[str, float] = defaultdict(float)
    pause = 0.0

    for idx, event in enumerate(events):
        next_at = events[idx + 1].at if idx + 1 < len(events) else boundary
        seg_start, seg_end = event.at, min(next_at, boundary)
        if seg_end <= seg_start:
            continue
        raw[segment_label(event)] += policy.elapsed(seg_start, seg_end)

        if anchors.work_start is not None and seg_end > anchors.work_start:
            if is_paused(event.status, event.dependency):
                pause += policy.elapsed(max(seg_start, anchors.work_start), seg_end)

    summary = DurationSummary(breakdown=_clean_breakdown(raw), pause_minutes=pause)
    if anchors.queue_entry is not None:
        summary.reaction_minutes = policy.elapsed(anchors.queue_entry, anchors.work_start or now)
    if anchors.work_start is not None:
        gross = policy.elapsed(anchors.work_start, anchors.completion or now)
        summary.gross_resolution_minutes = gross
        summary.resolution_minutes = max(0.0, gross - pause)
    return summary
