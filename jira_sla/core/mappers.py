"""Mapping raw Jira issue JSON into IssueModel instances, and results out to frames/dicts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime
from typing import Any

import pandas as pd

from .models import ChangelogEntry, FieldChange, IssueModel, SLAIssueResult, SLAReport

logger = logging.getLogger(__name__)

RESULT_COLUMNS = (
    "key",
    "summary",
    "status",
    "priority",
    "issue_type",
    "tier",
    "created",
    "resolution_date",
    "reaction_minutes",
    "resolution_minutes",
    "pause_minutes",
    "reaction_met",
    "resolution_met",
    "target_reaction",
    "target_resolution",
    "reaction_breach_at",
    "resolution_breach_at",
)


def parse_dt(val: Any) -> datetime | None:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        logger.warning("Unparseable timestamp %r", val)
        return None
    return ts.to_pydatetime()


def _name(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return value or None


def map_field_change(item: dict[str, Any]) -> FieldChange:
    return FieldChange(
        field=str(item.get("field") or ""),
        from_string=item.get("fromString") or "",
        to_string=item.get("toString") or "",
    )


def map_changelog(raw: dict[str, Any]) -> list[ChangelogEntry]:
    histories = (raw.get("changelog") or {}).get("histories", []) or []
    return [
        ChangelogEntry(
            author=(h.get("author") or {}).get("displayName"),
            created=parse_dt(h.get("created")),
            items=[map_field_change(it) for it in h.get("items") or [] if isinstance(it, dict)],
        )
        for h in histories
        if isinstance(h, dict)
    ]


def map_issue(raw: dict[str, Any]) -> IssueModel:
    fields = raw.get("fields", {}) or {}
    return IssueModel(
        key=raw.get("key"),
        summary=fields.get("summary"),
        priority=_name(fields.get("priority")),
        status=_name(fields.get("status")),
        created=parse_dt(fields.get("created")),
        issuetype=_name(fields.get("issuetype")),
        resolution_date=parse_dt(fields.get("resolutiondate")),
        changelog=map_changelog(raw),
    )


def results_to_dataframe(results: Iterable[SLAIssueResult]) -> pd.DataFrame:
    rows = []
    for r in results:
        rows.append(
            {
                "key": r.key,
                "summary": r.summary,
                "status": r.status,
                "priority": r.priority or "None",
                "issue_type": r.issue_type,
                "tier": r.tier,
                "created": r.created,
                "resolution_date": r.resolution_date,
                "reaction_minutes": r.reaction_minutes,
                "resolution_minutes": r.resolution_minutes,
                "pause_minutes": r.pause_minutes,
                "reaction_met": bool(r.reaction_met),
                "resolution_met": bool(r.resolution_met),
                "target_reaction": r.target_reaction,
                "target_resolution": r.target_resolution,
                "reaction_breach_at": r.reaction_breach_at,
                "resolution_breach_at": r.resolution_breach_at,
            }
        )
    return pd.DataFrame(rows, columns=list(RESULT_COLUMNS))


def format_duration(minutes: float | None) -> str:
    """Render minutes as ``HH:MM`` (hours are not wrapped at 24).

    >>> format_duration(135)
    '02:15'
    """
    if minutes is None or pd.isna(minutes):
        return "00:00"
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def report_to_dict(report: SLAReport, *, include_changelog: bool = False) -> dict[str, Any]:
    """Plain JSON-ready mapping of a report (datetimes as ISO-8601 strings)."""
    data = asdict(report)
    if not include_changelog:
        for issue in data["issues"]:
            issue.pop("changelog", None)
    return _jsonable(data)
