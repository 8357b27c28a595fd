from datetime import datetime

import pytz

from jira_sla.analytics.sla.timeline import (
    AnchorTracker,
    LifecyclePhase,
    effective_creation,
    reconstruct,
)
from jira_sla.core.models import ChangelogEntry, FieldChange, IssueModel

TZ = pytz.timezone("Europe/Rome")


def local(h, mi=0, day=3):
    return TZ.localize(datetime(2025, 3, day, h, mi))


def _issue(changes, created=None, issuetype="Bug"):
    changelog = [
        ChangelogEntry(author="agent", created=at, items=[FieldChange(field, frm, to)])
        for at, field, frm, to in changes
    ]
    return IssueModel(
        key="SUP-1",
        summary="Printer on fire",
        priority="High",
        status="Done",
        created=created or local(8),
        issuetype=issuetype,
        changelog=changelog,
    )


def test_seed_event_and_exact_transition():
    issue = _issue(
        [
            (local(9, 30), "status", "Open", "Presa in carico"),
            (local(11, 30), "status", "Presa in carico", "Done"),
        ]
    )
    events, anchors = reconstruct(issue)
    assert [(e.at, e.status) for e in events] == [
        (local(8), "Open"),
        (local(9, 30), "Presa in carico"),
        (local(11, 30), "Done"),
    ]
    assert anchors.queue_entry is None
    assert anchors.work_start == local(9, 30)
    assert anchors.completion == local(11, 30)


def test_queue_entry_on_first_move_into_intake():
    issue = _issue(
        [
            (local(8, 10), "status", "New", "Open"),
            (local(9), "status", "Open", "In Progress"),
        ]
    )
    _, anchors = reconstruct(issue)
    assert anchors.queue_entry == local(8, 10)
    assert anchors.work_start == local(9)
    assert effective_creation(issue, anchors) == local(8, 10)


def test_exact_transition_wins_over_earlier_fallback():
    issue = _issue(
        [
            (local(8, 30), "status", "Open", "Triage"),
            (local(8, 45), "status", "Triage", "In Progress"),
            (local(9), "status", "In Progress", "Open"),
            (local(10), "status", "Open", "Presa in carico"),
        ]
    )
    _, anchors = reconstruct(issue)
    assert anchors.work_start == local(10)


def test_fallback_when_no_exact_transition():
    issue = _issue(
        [
            (local(8, 30), "status", "Open", "Triage"),
            (local(9), "status", "Triage", "In Progress"),
        ]
    )
    _, anchors = reconstruct(issue)
    assert anchors.work_start == local(9)


def test_causal_link_used_as_queue_entry_fallback():
    issue = _issue(
        [
            (local(8, 20), "Link", "", "This issue is caused by OPS-1"),
            (local(9), "status", "Open", "In Progress"),
        ]
    )
    _, anchors = reconstruct(issue)
    assert anchors.queue_entry == local(8, 20)
    assert effective_creation(issue, anchors) == local(8, 20)


def test_changelog_is_sorted_before_replay():
    changes = [
        (local(11, 30), "status", "In Progress", "Done"),
        (local(9), "status", "Open", "In Progress"),
    ]
    events, anchors = reconstruct(_issue(changes))
    assert [e.at for e in events] == sorted(e.at for e in events)
    assert anchors.work_start == local(9)
    assert anchors.completion == local(11, 30)


def test_dependency_label_set_and_cleared():
    issue = _issue(
        [
            (local(9), "status", "Open", "In Progress"),
            (local(10), "Dependency", "", "Waiting for Customer"),
            (local(11), "Dependency", "Waiting for Customer", ""),
        ]
    )
    events, _ = reconstruct(issue)
    assert [(e.status, e.dependency) for e in events] == [
        ("Open", ""),
        ("In Progress", ""),
        ("In Progress", "Waiting for Customer"),
        ("In Progress", ""),
    ]


def test_completion_is_first_done_only():
    issue = _issue(
        [
            (local(9), "status", "Open", "In Progress"),
            (local(11), "status", "In Progress", "Done"),
            (local(12), "status", "Done", "In Progress"),
            (local(13), "status", "In Progress", "Done"),
        ]
    )
    _, anchors = reconstruct(issue)
    assert anchors.completion == local(11)


def test_no_changelog_yields_seed_only():
    events, anchors = reconstruct(_issue([]))
    assert len(events) == 1 and events[0].status == "Open"
    assert anchors.queue_entry is None
    assert anchors.work_start is None
    assert anchors.completion is None


def test_missing_values_are_not_fatal():
    issue = _issue([(local(9), "status", "", "")])
    events, anchors = reconstruct(issue)
    assert len(events) == 1
    assert anchors.work_start is None


def test_missing_created_yields_nothing():
    issue = _issue([(local(9), "status", "Open", "In Progress")])
    issue.created = None
    events, anchors = reconstruct(issue)
    assert events == []
    assert anchors.work_start is None


def test_tracker_phases():
    tracker = AnchorTracker()
    assert tracker.phase is LifecyclePhase.INTAKE
    tracker.observe_status(local(9), "Open", "In Progress")
    assert tracker.phase is LifecyclePhase.ACTIVE
    tracker.observe_status(local(10), "In Progress", "Done")
    assert tracker.phase is LifecyclePhase.DONE
    tracker.observe_status(local(11), "Done", "Open")
    assert tracker.phase is LifecyclePhase.DONE
    assert tracker.anchors().queue_entry is None


def test_reopened_issue_keeps_first_lifecycle_anchors():
    issue = _issue(
        [
            (local(9), "status", "Open", "Done"),
            (local(10), "status", "Done", "In Progress"),
            (local(11), "Link", "", "This issue is caused by OPS-2"),
        ]
    )
    events, anchors = reconstruct(issue)
    assert anchors.completion == local(9)
    assert anchors.work_start is None
    assert anchors.queue_entry is None
    # the timeline itself still records the reopen
    assert events[-1].status == "In Progress"


def test_naive_and_aware_instants_mix():
    issue = _issue(
        [
            (datetime(2025, 3, 3, 9, 30), "status", "Open", "In Progress"),
            (local(11), "status", "In Progress", "Done"),
        ],
        created=datetime(2025, 3, 3, 8, 0),
    )
    events, anchors = reconstruct(issue)
    assert events[0].at == local(8)
    assert anchors.work_start == local(9, 30)
    assert anchors.completion == local(11)
