"""Domain data models for issues, change histories, and SLA results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class FieldChange:
    field: str
    from_string: str = ""
    to_string: str = ""


@dataclass(slots=True)
class ChangelogEntry:
    author: str | None
    created: datetime | None
    items: list[FieldChange] = field(default_factory=list)


@dataclass(slots=True)
class IssueModel:
    key: str
    summary: str | None
    priority: str | None
    status: str | None
    created: datetime | None
    issuetype: str | None
    resolution_date: datetime | None = None
    changelog: list[ChangelogEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StateTimelineEvent:
    at: datetime
    status: str
    dependency: str = ""


@dataclass(slots=True)
class Anchors:
    queue_entry: datetime | None = None
    work_start: datetime | None = None
    completion: datetime | None = None


@dataclass(slots=True)
class SLAIssueResult:
    key: str
    summary: str | None
    status: str | None
    priority: str | None
    issue_type: str | None
    tier: str
    created: datetime | None
    resolution_date: datetime | None
    reaction_minutes: float
    resolution_minutes: float
    pause_minutes: float
    reaction_met: bool
    resolution_met: bool
    target_reaction: float | None
    target_resolution: float
    breakdown: dict[str, float] = field(default_factory=dict)
    work_minutes: float = 0.0
    reaction_breach_at: datetime | None = None
    resolution_breach_at: datetime | None = None
    changelog: list[ChangelogEntry] = field(default_factory=list)


@dataclass(slots=True)
class PriorityStats:
    total: int = 0
    met: int = 0
    missed: int = 0


@dataclass(slots=True)
class TierCompliance:
    name: str
    tiers: list[str]
    total: int
    reaction_percent: float
    resolution_percent: float
    reaction_tolerance: float | None = None
    resolution_tolerance: float | None = None
    reaction_within_tolerance: bool = True
    resolution_within_tolerance: bool = True


@dataclass(slots=True)
class SLAReport:
    total_issues: int
    met_resolution: int
    missed_resolution: int
    compliance_percent: float
    overall_compliance_percent: float
    by_priority: dict[str, PriorityStats] = field(default_factory=dict)
    by_tier: dict[str, TierCompliance] = field(default_factory=dict)
    by_group: dict[str, TierCompliance] = field(default_factory=dict)
    rejected_count: int = 0
    skipped_rows: int = 0
    issues: list[SLAIssueResult] = field(default_factory=list)
