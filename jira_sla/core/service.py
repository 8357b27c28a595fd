"""SLAService: orchestrates fetching, mapping, evaluation, and aggregation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from jira_sla.analytics.aggregations.compliance import build_report
from jira_sla.analytics.sla.engine import evaluate_issue

from .config import JIRA_FETCH_BASE_FIELDS, JIRA_FETCH_EXPAND
from .jira_client import JiraAPI
from .mappers import map_issue
from .models import IssueModel, SLAIssueResult, SLAReport
from .sla_config import SLAConfig
from .status import same_label

DEFAULT_FIELDS: Sequence[str] = tuple(JIRA_FETCH_BASE_FIELDS)
ProgressCallback = Callable[[str, int | None, int | None], None]

logger = logging.getLogger(__name__)


def filter_issue_types(issues: Sequence[IssueModel], allowed: Sequence[str]) -> list[IssueModel]:
    """Keep issues whose type is in ``allowed`` (case-insensitive); empty keeps all."""
    if not allowed:
        return list(issues)
    return [i for i in issues if any(same_label(i.issuetype, a) for a in allowed)]


class SLAService:
    def __init__(self, api: JiraAPI, config: SLAConfig | None = None):
        self.api = api
        self.config = config or SLAConfig()

    # ------------------ Fetch Methods ------------------
    def fetch_issues(
        self,
        jql: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[IssueModel]:
        if progress:
            progress("Querying issues", None, None)
        raw = self.api.search_enhanced(
            jql,
            fields=list(DEFAULT_FIELDS),
            expand=list(JIRA_FETCH_EXPAND),
        )
        issues = [map_issue(r) for r in raw if isinstance(r, dict)]
        kept = filter_issue_types(issues, self.config.issue_types)
        logger.info("Fetched %d issues (%d after issue-type filter)", len(issues), len(kept))
        return kept

    def fetch_project_issues(
        self,
        project_key: str,
        *,
        created_since: datetime | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[IssueModel]:
        date_clause = ""
        if created_since is not None:
            date_clause = f" AND created >= '{created_since.strftime('%Y-%m-%d')}'"
        jql = f'project = "{project_key}"{date_clause} ORDER BY created DESC'
        return self.fetch_issues(jql, progress=progress)

    # ------------------ Evaluation ------------------
    def evaluate(
        self,
        issues: Sequence[IssueModel],
        *,
        now: datetime | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[SLAIssueResult]:
        now = now or datetime.now(UTC)
        results: list[SLAIssueResult] = []
        total = len(issues)
        for idx, issue in enumerate(issues, start=1):
            results.append(evaluate_issue(issue, self.config, now))
            if progress:
                progress("Computing SLA figures", idx, total)
        return results

    def report_for_jql(
        self,
        jql: str,
        *,
        now: datetime | None = None,
        exclude_rejected: bool = False,
        progress: ProgressCallback | None = None,
    ) -> SLAReport:
        issues = self.fetch_issues(jql, progress=progress)
        results = self.evaluate(issues, now=now, progress=progress)
        return build_report(results, self.config, exclude_rejected=exclude_rejected)

    def report_for_project(
        self,
        project_key: str,
        *,
        created_since: datetime | None = None,
        now: datetime | None = None,
        exclude_rejected: bool = False,
        progress: ProgressCallback | None = None,
    ) -> SLAReport:
        issues = self.fetch_project_issues(project_key, created_since=created_since, progress=progress)
        results = self.evaluate(issues, now=now, progress=progress)
        return build_report(results, self.config, exclude_rejected=exclude_rejected)

    def issue_detail(self, issue_key: str, *, now: datetime | None = None) -> tuple[SLAIssueResult, dict[str, Any]]:
        raw = self.api.fetch_issue_raw(issue_key)
        return evaluate_issue(map_issue(raw), self.config, now), raw
