from datetime import datetime, timedelta

import pytz

from jira_sla.analytics.sla.calendar import CalendarPolicy
from jira_sla.analytics.sla.durations import accumulate
from jira_sla.analytics.sla.timeline import reconstruct
from jira_sla.core.models import Anchors, ChangelogEntry, FieldChange, IssueModel, StateTimelineEvent

TZ = pytz.timezone("Europe/Rome")
POLICY = CalendarPolicy()


def local(h, mi=0, day=3):
    return TZ.localize(datetime(2025, 3, day, h, mi))


def _issue(changes):
    return IssueModel(
        key="SUP-7",
        summary="VPN down",
        priority="High",
        status="Done",
        created=local(8),
        issuetype="Bug",
        changelog=[
            ChangelogEntry(author="agent", created=at, items=[FieldChange(field, frm, to)])
            for at, field, frm, to in changes
        ],
    )


def _run(changes, now=None):
    events, anchors = reconstruct(_issue(changes))
    return accumulate(events, anchors, POLICY, now or local(18, day=7))


def test_straight_resolution():
    summary = _run(
        [
            (local(9, 30), "status", "Open", "Presa in carico"),
            (local(11, 30), "status", "Presa in carico", "Done"),
        ]
    )
    assert summary.breakdown == {"Open": 30.0, "Presa in carico": 120.0}
    assert summary.resolution_minutes == 120
    assert summary.pause_minutes == 0
    assert summary.reaction_minutes == 0


def test_pause_status_is_subtracted_from_resolution():
    summary = _run(
        [
            (local(9), "status", "Open", "In Progress"),
            (local(10), "status", "In Progress", "In pausa"),
            (local(12), "status", "In pausa", "In Progress"),
            (local(15), "status", "In Progress", "Done"),
        ]
    )
    assert summary.gross_resolution_minutes == 360
    assert summary.pause_minutes == 120
    assert summary.resolution_minutes == 240
    assert summary.breakdown == {"In Progress": 240.0, "In pausa": 120.0}


def test_dependency_label_pauses_and_labels_segment():
    summary = _run(
        [
            (local(9), "status", "Open", "In Progress"),
            (local(10), "Dependency", "", "Waiting for Customer"),
            (local(11), "Dependency", "Waiting for Customer", ""),
            (local(12), "status", "In Progress", "Done"),
        ]
    )
    assert summary.pause_minutes == 60
    assert summary.resolution_minutes == 120
    assert summary.breakdown["Waiting for Customer"] == 60
    assert summary.breakdown["In Progress"] == 120


def test_internal_dependency_does_not_pause():
    summary = _run(
        [
            (local(9), "status", "Open", "In Progress"),
            (local(10), "Dependency", "", "Waiting for Internal Team"),
            (local(11), "Dependency", "Waiting for Internal Team", ""),
            (local(12), "status", "In Progress", "Done"),
        ]
    )
    assert summary.pause_minutes == 0
    assert summary.resolution_minutes == 180
    assert summary.breakdown["Waiting for Internal Team"] == 60


def test_open_issue_uses_now_as_boundary():
    summary = _run([(local(9), "status", "New", "Open")], now=local(10, 30))
    assert summary.reaction_minutes == 90
    assert summary.resolution_minutes == 0
    assert summary.breakdown == {"Open": 90.0}


def test_pause_before_work_start_is_ignored():
    summary = _run(
        [
            (local(9), "status", "New", "Open"),
            (local(9, 30), "status", "Open", "In pausa"),
            (local(10), "status", "In pausa", "Open"),
            (local(10, 30), "status", "Open", "In Progress"),
            (local(11, 30), "status", "In Progress", "Done"),
        ]
    )
    assert summary.reaction_minutes == 90
    assert summary.pause_minutes == 0
    assert summary.resolution_minutes == 60


def test_resolution_continues_past_closing_on_next_day():
    summary = _run(
        [
            (local(17), "status", "Open", "In Progress"),
            (local(10, day=4), "status", "In Progress", "Done"),
        ]
    )
    assert summary.resolution_minutes == 120


def test_noise_segments_are_dropped_from_breakdown():
    done_at = local(10) + timedelta(milliseconds=300)
    events = [
        StateTimelineEvent(at=local(9), status="In Progress"),
        StateTimelineEvent(at=local(10), status="Triage"),
        StateTimelineEvent(at=done_at, status="Done"),
    ]
    anchors = Anchors(work_start=local(9), completion=done_at)
    summary = accumulate(events, anchors, POLICY, local(12))
    assert "Triage" not in summary.breakdown
    assert summary.breakdown["In Progress"] == 60.0
