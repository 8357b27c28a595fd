"""Timeline reconstruction from an issue's changelog.

The changelog is replayed in ascending time order to produce the ordered
sequence of (status, dependency) states and the three lifecycle anchors:

- ``queue_entry``: first time the running status becomes the intake label
  (falls back to the first causal-link creation when never observed);
- ``work_start``: an exact intake -> active-work transition, or failing that
  the first transition into any active-work label;
- ``completion``: first time the status becomes the done label. Completion
  is terminal: later transitions (a reopen) no longer move any anchor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from jira_sla.core.config import INTAKE_STATUS
from jira_sla.core.models import Anchors, ChangelogEntry, IssueModel, StateTimelineEvent
from jira_sla.core.status import (
    is_active_status,
    is_causal_link,
    is_dependency_token,
    is_done_status,
    is_intake_status,
)

from .calendar import CalendarPolicy

logger = logging.getLogger(__name__)


class LifecyclePhase(Enum):
    INTAKE = "intake"
    ACTIVE = "active"
    DONE = "done"


@dataclass(slots=True)
class AnchorTracker:
    """State machine deriving anchors from observed status transitions.

    The phase gates every transition:

    - INTAKE/ACTIVE -> intake label: records queue entry (first only), phase INTAKE;
    - INTAKE/ACTIVE -> active label: an exact intake -> active transition
      always wins over the generic "first entry into an active label"
      fallback, whichever is observed first; phase ACTIVE;
    - INTAKE/ACTIVE -> done label: records completion, phase DONE;
    - DONE is terminal. A reopened issue keeps the anchors of its first
      lifecycle, so no anchor can land after completion.
    """

    phase: LifecyclePhase = LifecyclePhase.INTAKE
    queue_entry: datetime | None = None
    exact_work_start: datetime | None = None
    fallback_work_start: datetime | None = None
    completion: datetime | None = None
    causal_link: datetime | None = None

    def observe_status(self, at: datetime, previous: str, current: str) -> None:
        if self.phase is LifecyclePhase.DONE:
            logger.debug("Ignoring %s -> %s at %s after completion", previous, current, at)
            return
        if is_done_status(current):
            self.completion = at
            self.phase = LifecyclePhase.DONE
        elif is_active_status(current):
            if is_intake_status(previous) and self.exact_work_start is None:
                self.exact_work_start = at
            if self.fallback_work_start is None:
                self.fallback_work_start = at
            self.phase = LifecyclePhase.ACTIVE
        elif is_intake_status(current):
            if self.queue_entry is None:
                self.queue_entry = at
            self.phase = LifecyclePhase.INTAKE

    def observe_causal_link(self, at: datetime) -> None:
        if self.causal_link is None and self.phase is not LifecyclePhase.DONE:
            self.causal_link = at

    def anchors(self) -> Anchors:
        return Anchors(
            queue_entry=self.queue_entry or self.causal_link,
            work_start=self.exact_work_start or self.fallback_work_start,
            completion=self.completion,
        )


def sorted_changelog(
    entries: list[ChangelogEntry],
    localize: Callable[[datetime], datetime] = CalendarPolicy().localize,
) -> list[tuple[datetime, ChangelogEntry]]:
    """Dated entries paired with their local instant, ascending (stable for ties)."""
    dated = [(localize(e.created), e) for e in entries if e.created is not None]
    return sorted(dated, key=lambda pair: pair[0])


def reconstruct(
    issue: IssueModel,
    policy: CalendarPolicy | None = None,
) -> tuple[list[StateTimelineEvent], Anchors]:
    """Replay ``issue.changelog`` into timeline events and anchors.

    The first event is synthesized at the creation instant with the intake
    label. An issue without a creation instant yields no events and empty
    anchors. Every instant is normalized to the policy timezone first (naive
    values are local wall-clock time), so naive and aware inputs mix safely.
    """
    if issue.created is None:
        return [], Anchors()

    localize = (policy or CalendarPolicy()).localize
    created = localize(issue.created)
    status = INTAKE_STATUS
    dependency = ""
    events = [StateTimelineEvent(at=created, status=status, dependency=dependency)]
    tracker = AnchorTracker()

    for at, entry in sorted_changelog(issue.changelog, localize):
        if at < created:
            at = created
        changed = False
        for item in entry.items:
            field_name = (item.field or "").strip().lower()
            if field_name == "status" and item.to_string:
                previous = status
                status = item.to_string
                tracker.observe_status(at, item.from_string or previous, status)
                changed = changed or status != previous
            if is_causal_link(item.field, item.to_string):
                tracker.observe_causal_link(at)
            if is_dependency_token(item.to_string):
                changed = changed or dependency != item.to_string
                dependency = item.to_string
            elif is_dependency_token(item.from_string):
                changed = changed or dependency != ""
                dependency = ""
        if changed:
            events.append(StateTimelineEvent(at=at, status=status, dependency=dependency))

    anchors = tracker.anchors()
    logger.debug(
        "%s: %d timeline events, queue=%s work=%s done=%s",
        issue.key,
        len(events),
        anchors.queue_entry,
        anchors.work_start,
        anchors.completion,
    )
    return events, anchors


def effective_creation(issue: IssueModel, anchors: Anchors) -> datetime | None:
    """Instant used to select the calendar regime: queue entry, else creation."""
    return anchors.queue_entry or issue.created


def current_state(events: list[StateTimelineEvent]) -> StateTimelineEvent | None:
    return events[-1] if events else None
