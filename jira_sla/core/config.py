"""Central configuration, constants, and SLA policy defaults."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, time

# =============================================================================
# Jira Connection Settings
# =============================================================================
TIMEZONE = "Europe/Rome"

# Canonical field list for SLA fetches (changelog is requested via expand)
JIRA_FETCH_BASE_FIELDS = [
    "summary",
    "status",
    "issuetype",
    "created",
    "priority",
    "resolutiondate",
]
JIRA_FETCH_EXPAND = ["changelog"]

# =============================================================================
# Calendar
# =============================================================================
BUSINESS_OPEN: time = time(9, 0)
BUSINESS_CLOSE: time = time(18, 0)
LUNCH_START: time = time(13, 0)
LUNCH_END: time = time(14, 0)

# Fixed annual holidays as (month, day)
FIXED_HOLIDAYS: frozenset[tuple[int, int]] = frozenset(
    {
        (1, 1),  # New Year's Day
        (1, 6),  # Epiphany
        (4, 25),  # Liberation Day
        (5, 1),  # Labour Day
        (6, 2),  # Republic Day
        (8, 15),  # Assumption
        (11, 1),  # All Saints
        (12, 8),  # Immaculate Conception
        (12, 25),  # Christmas
        (12, 26),  # St. Stephen
    }
)

# Years covered by the default Easter Monday table
MOVABLE_HOLIDAY_YEARS: range = range(2020, 2036)

# Issues of the highest tier whose effective creation falls on/after this date
# are measured on the continuous (24x7) calendar. None disables the rule.
DEFAULT_CONTINUOUS_CUTOVER: date | None = date(2025, 1, 1)

# =============================================================================
# Workflow Labels
# Matching is case-insensitive; see core/status.py.
# =============================================================================
INTAKE_STATUS = "Open"

ACTIVE_STATUSES: Sequence[str] = (
    "Presa in carico",
    "In Progress",
    "Developer Testing",
    "READY IN HOTFIX",
)

DONE_STATUS = "Done"

REJECTED_STATUS = "Rejected"

PAUSE_STATUSES: frozenset[str] = frozenset(
    {
        "Waiting for support",
        "Waiting for Support (II° Level)",
        "In pausa",
        "Sospeso",
        "Pausa",
    }
)

# Values of any changelog field that flag an external dependency
DEPENDENCY_TOKENS: frozenset[str] = frozenset(
    {
        "Waiting for Customer",
        "Waiting for Vendor",
        "Waiting for Third Party",
        "Waiting for Internal Team",
    }
)

# Dependencies that suspend the resolution clock
PAUSE_DEPENDENCIES: frozenset[str] = frozenset(
    {
        "Waiting for Customer",
        "Waiting for Vendor",
        "Waiting for Third Party",
    }
)

# A changelog item on this field whose value contains the marker records the
# creation of a causal link ("is caused by ...")
CAUSAL_LINK_FIELD = "link"
CAUSAL_LINK_MARKER = "caused by"

# =============================================================================
# SLA Tiers and Targets (minutes)
# =============================================================================
DEFAULT_TIERS: Sequence[str] = ("Expedite", "Critical", "Major", "Minor", "Trivial")

FALLBACK_TIER = "Major"

# Priority aliases for tier lookup (lowercase keys)
DEFAULT_PRIORITY_TIERS: dict[str, str] = {
    "highest": "Expedite",
    "critical": "Expedite",
    "high": "Critical",
    "medium": "Major",
    "low": "Minor",
    "lowest": "Trivial",
}

DEFAULT_REACTION_MINUTES: float = 15.0

DEFAULT_RESOLUTION_MINUTES: dict[str, float] = {
    "Expedite": 240.0,  # 4h
    "Critical": 480.0,  # 8h
    "Major": 960.0,  # 16h
    "Minor": 1920.0,  # 32h
    "Trivial": 2400.0,  # 40h
}

FALLBACK_RESOLUTION_MINUTES: float = 2400.0

# Allowed breach % per tier
DEFAULT_REACTION_TOLERANCES: dict[str, float] = {tier: 5.0 for tier in DEFAULT_TIERS}
DEFAULT_RESOLUTION_TOLERANCES: dict[str, float] = {
    "Expedite": 10.0,
    "Critical": 20.0,
    "Major": 20.0,
    "Minor": 20.0,
    "Trivial": 20.0,
}

# Task-type issues: reaction is unconstrained, resolution gets five working days
TASK_ISSUE_TYPE = "Task"
TASK_RESOLUTION_MINUTES: float = 5 * 9 * 60.0

COMPLIANCE_EPSILON: float = 0.001

# Breakdown entries at or below this many minutes are dropped
BREAKDOWN_NOISE_MINUTES: float = 0.01

# =============================================================================
# CSV Export Columns
# =============================================================================
CSV_REQUIRED_COLUMNS: Sequence[str] = (
    "Key",
    "Priority",
    "Status",
    "Created",
    "Summary",
    "Issue Type",
    "Open",
    "Backlog",
)
CSV_REACTION_COLUMNS: Sequence[str] = ("Open", "Backlog")
CSV_PAUSE_COLUMNS: Sequence[str] = (
    "Waiting for support",
    "Waiting for Support (II° Level)-10104",
    "In pausa",
    "Sospeso",
    "Pausa",
)
CSV_WORK_COLUMNS: Sequence[str] = (
    "In Progress",
    "Presa in carico",
    "Developer Testing",
    "READY IN HOTFIX",
)
CSV_RESOLUTION_DATE_COLUMNS: Sequence[str] = ("'->Released", "'->Done")
CSV_DEFAULT_PRIORITY = "Medium"
CSV_DEFAULT_ISSUE_TYPE = "Task"


@dataclass(slots=True)
class AppSettings:
    jira_page_size: int = 1000
    jira_cache_ttl: float = 300.0
    output_encoding: str = "utf-8"


SETTINGS = AppSettings()
