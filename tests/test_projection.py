from datetime import datetime

import pytz

from jira_sla.analytics.sla.calendar import CalendarPolicy
from jira_sla.analytics.sla.durations import DurationSummary
from jira_sla.analytics.sla.engine import evaluate_issue
from jira_sla.analytics.sla.projection import project_breaches
from jira_sla.analytics.sla.tiers import SLATargets
from jira_sla.core.models import Anchors, ChangelogEntry, FieldChange, IssueModel, StateTimelineEvent

TZ = pytz.timezone("Europe/Rome")
POLICY = CalendarPolicy()
TARGETS = SLATargets(reaction=15.0, resolution=480.0)


def local(h, mi=0, day=3):
    return TZ.localize(datetime(2025, 3, day, h, mi))


def test_resolution_breach_carries_over_closing():
    events = [StateTimelineEvent(at=local(9), status="In Progress")]
    summary = DurationSummary(resolution_minutes=450)
    projection = project_breaches(events, Anchors(work_start=local(9)), summary, TARGETS, POLICY, local(17, 50))
    assert projection.resolution_at == local(9, 20, day=4)
    assert projection.reaction_at is None


def test_paused_issue_has_no_resolution_projection():
    events = [
        StateTimelineEvent(at=local(9), status="In Progress"),
        StateTimelineEvent(at=local(10), status="In Progress", dependency="Waiting for Vendor"),
    ]
    summary = DurationSummary(resolution_minutes=60)
    projection = project_breaches(events, Anchors(work_start=local(9)), summary, TARGETS, POLICY, local(11))
    assert projection.resolution_at is None


def test_exhausted_allowance_has_no_projection():
    events = [StateTimelineEvent(at=local(9), status="In Progress")]
    summary = DurationSummary(resolution_minutes=500)
    projection = project_breaches(events, Anchors(work_start=local(9)), summary, TARGETS, POLICY, local(17))
    assert projection.resolution_at is None


def test_reaction_projection_while_waiting_in_queue():
    events = [StateTimelineEvent(at=local(10), status="Open")]
    summary = DurationSummary(reaction_minutes=5)
    anchors = Anchors(queue_entry=local(10))
    projection = project_breaches(events, anchors, summary, TARGETS, POLICY, local(10, 5))
    assert projection.reaction_at == local(10, 15)
    assert projection.resolution_at is None


def test_unconstrained_reaction_is_never_projected():
    events = [StateTimelineEvent(at=local(10), status="Open")]
    targets = SLATargets(reaction=None, resolution=2700.0)
    anchors = Anchors(queue_entry=local(10))
    projection = project_breaches(events, anchors, DurationSummary(), targets, POLICY, local(10, 5))
    assert projection.reaction_at is None


def _open_issue(priority, changes, created):
    return IssueModel(
        key="SUP-9",
        summary="Mail queue stuck",
        priority=priority,
        status="In Progress",
        created=created,
        issuetype="Bug",
        changelog=[
            ChangelogEntry(author="agent", created=at, items=[FieldChange("status", frm, to)])
            for at, frm, to in changes
        ],
    )


def test_engine_projects_open_issue_in_business_hours():
    issue = _open_issue("Medium", [(local(9), "Open", "In Progress")], local(8))
    result = evaluate_issue(issue, now=local(10))
    assert result.tier == "Major"
    assert result.resolution_minutes == 60
    assert result.resolution_breach_at == local(16, day=4)
    assert result.reaction_breach_at is None


def test_engine_projects_continuous_expedite_on_weekend():
    saturday = 8
    issue = _open_issue(
        "Highest",
        [
            (local(9, 30, day=saturday), "New", "Open"),
            (local(10, day=saturday), "Open", "In Progress"),
        ],
        local(9, day=saturday),
    )
    result = evaluate_issue(issue, now=local(11, day=saturday))
    assert result.tier == "Expedite"
    assert result.reaction_minutes == 30
    assert result.reaction_met is False
    assert result.resolution_minutes == 60
    assert result.resolution_breach_at == local(14, day=saturday)


def test_no_resolution_projection_before_work_starts():
    events = [StateTimelineEvent(at=local(9), status="Open")]
    anchors = Anchors(work_start=None, completion=None)
    projection = project_breaches(events, anchors, DurationSummary(), TARGETS, POLICY, local(10))
    assert projection.resolution_at is None
    assert projection.reaction_at is None
