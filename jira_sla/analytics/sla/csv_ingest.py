"""Column-based SLA ingestion from a tracker CSV export.

The export already carries minutes spent per status, so no timeline is
reconstructed: reaction is the sum of the queue columns, pause the sum of the
pause columns, and resolution the sum of the active-work columns. Tier and
compliance use the same resolver and evaluator as the changelog path; no
breach projection is made.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from jira_sla.analytics.aggregations.compliance import build_report
from jira_sla.core.config import (
    CSV_DEFAULT_ISSUE_TYPE,
    CSV_DEFAULT_PRIORITY,
    CSV_PAUSE_COLUMNS,
    CSV_REACTION_COLUMNS,
    CSV_REQUIRED_COLUMNS,
    CSV_RESOLUTION_DATE_COLUMNS,
    CSV_WORK_COLUMNS,
)
from jira_sla.core.mappers import parse_dt
from jira_sla.core.models import SLAIssueResult, SLAReport
from jira_sla.core.sla_config import SLAConfig

from .tiers import is_compliant, is_task, resolve_targets, resolve_tier

logger = logging.getLogger(__name__)

# Split on commas that are followed by an even number of quotes
_CSV_SPLIT = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')


class CSVFormatError(ValueError):
    """Raised when the export header lacks a required column."""


@dataclass(slots=True)
class ParsedExport:
    results: list[SLAIssueResult]
    skipped_rows: int = 0


def split_csv_line(line: str) -> list[str]:
    """Tokenize one CSV line, keeping quoted commas inside their field.

    >>> split_csv_line('A-1,"Login, broken",12')
    ['A-1', 'Login, broken', '12']
    """
    return [_unquote(col) for col in _CSV_SPLIT.split(line)]


def _unquote(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text.replace('""', '"').strip()


def parse_number(value: str | None) -> float:
    """Parse a minutes cell; ``-``/empty/garbage is 0.

    ``1,781.5`` -> 1781.5 (comma as thousands separator when a dot is present),
    ``12,5`` -> 12.5 (comma as decimal separator otherwise).
    """
    if value is None:
        return 0.0
    text = value.replace('"', "").replace(" ", "").strip()
    if not text or text == "-":
        return 0.0
    if "." in text:
        text = text.replace(",", "")
    else:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return 0.0


def _sum_columns(row: dict[str, str], columns: Sequence[str]) -> tuple[float, dict[str, float]]:
    total = 0.0
    parts: dict[str, float] = {}
    for col in columns:
        if col in row:
            minutes = parse_number(row[col])
            total += minutes
            if minutes > 0:
                parts[col] = round(minutes, 2)
    return total, parts


def _resolution_date(row: dict[str, str]) -> str | None:
    for col in CSV_RESOLUTION_DATE_COLUMNS:
        val = row.get(col)
        if val and val != "-":
            return val
    return None


def _row_to_result(row: dict[str, str], config: SLAConfig) -> SLAIssueResult:
    priority = row.get("Priority") or CSV_DEFAULT_PRIORITY
    issue_type = row.get("Issue Type") or CSV_DEFAULT_ISSUE_TYPE
    tier = resolve_tier(priority, config)
    targets = resolve_targets(tier, issue_type, config)

    reaction, reaction_parts = _sum_columns(row, CSV_REACTION_COLUMNS)
    pause, pause_parts = _sum_columns(row, CSV_PAUSE_COLUMNS)
    work, work_parts = _sum_columns(row, CSV_WORK_COLUMNS)

    return SLAIssueResult(
        key=row.get("Key", ""),
        summary=row.get("Summary"),
        status=row.get("Status"),
        priority=priority,
        issue_type=issue_type,
        tier=tier,
        created=parse_dt(row.get("Created")),
        resolution_date=parse_dt(_resolution_date(row)),
        reaction_minutes=round(reaction),
        resolution_minutes=round(work),
        pause_minutes=round(pause),
        work_minutes=round(work),
        reaction_met=is_task(issue_type) or is_compliant(reaction, targets.reaction),
        resolution_met=is_compliant(work, targets.resolution),
        target_reaction=targets.reaction,
        target_resolution=targets.resolution,
        breakdown={**reaction_parts, **pause_parts, **work_parts},
    )


def parse_export(content: str, config: SLAConfig | None = None) -> ParsedExport:
    """Parse export text into per-issue results.

    Rows with fewer columns than the header are skipped and counted.
    """
    config = config or SLAConfig()
    lines = content.lstrip("\ufeff").splitlines()
    if not lines:
        raise CSVFormatError("CSV export is empty")
    headers = split_csv_line(lines[0])
    missing = [c for c in CSV_REQUIRED_COLUMNS if c not in headers]
    if missing:
        raise CSVFormatError(f"CSV export is missing required columns: {', '.join(missing)}")

    results: list[SLAIssueResult] = []
    skipped = 0
    for line in lines[1:]:
        if not line.strip():
            continue
        cols = split_csv_line(line)
        if len(cols) < len(headers):
            skipped += 1
            continue
        # First occurrence wins for duplicated header names
        row: dict[str, str] = {}
        for name, value in zip(headers, cols):
            row.setdefault(name, value)
        results.append(_row_to_result(row, config))

    if skipped:
        logger.warning("Skipped %d CSV rows with fewer columns than the header", skipped)
    logger.info("Parsed %d issues from CSV export", len(results))
    return ParsedExport(results=results, skipped_rows=skipped)


def parse_sla_csv(
    content: str,
    config: SLAConfig | None = None,
    *,
    exclude_rejected: bool = False,
) -> SLAReport:
    config = config or SLAConfig()
    parsed = parse_export(content, config)
    return build_report(
        parsed.results,
        config,
        exclude_rejected=exclude_rejected,
        skipped_rows=parsed.skipped_rows,
    )
