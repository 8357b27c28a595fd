"""SLA evaluation: the pure transform (issue, config, now) -> SLAIssueResult."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from jira_sla.core.models import IssueModel, SLAIssueResult
from jira_sla.core.sla_config import SLAConfig

from .calendar import select_policy
from .durations import accumulate
from .projection import project_breaches
from .tiers import is_compliant, is_task, resolve_targets, resolve_tier
from .timeline import effective_creation, reconstruct

logger = logging.getLogger(__name__)


def evaluate_issue(
    issue: IssueModel,
    config: SLAConfig | None = None,
    now: datetime | None = None,
) -> SLAIssueResult:
    """Compute SLA figures, compliance, and breach projections for one issue.

    ``now`` is read once (when not supplied) and used both as the open-issue
    boundary for accumulation and as the origin of projections. Naive
    instants (issue, changelog and ``now``) are read as local wall-clock time.
    """
    config = config or SLAConfig()
    now = now or datetime.now(UTC)

    events, anchors = reconstruct(issue)
    tier = resolve_tier(issue.priority, config)
    policy = select_policy(
        tier,
        effective_creation(issue, anchors),
        highest_tier=config.highest_tier,
        cutover=config.continuous_cutover,
        exclude_lunch=config.exclude_lunch,
        holidays=config.holidays,
    )
    now = policy.localize(now)
    summary = accumulate(events, anchors, policy, now)
    targets = resolve_targets(tier, issue.issuetype, config)
    projection = project_breaches(events, anchors, summary, targets, policy, now)
    logger.debug("%s: tier=%s regime=%s", issue.key, tier, policy.regime.value)

    return SLAIssueResult(
        key=issue.key,
        summary=issue.summary,
        status=issue.status,
        priority=issue.priority,
        issue_type=issue.issuetype,
        tier=tier,
        created=issue.created,
        resolution_date=issue.resolution_date or anchors.completion,
        reaction_minutes=round(summary.reaction_minutes, 2),
        resolution_minutes=round(summary.resolution_minutes, 2),
        pause_minutes=round(summary.pause_minutes, 2),
        work_minutes=round(summary.resolution_minutes, 2),
        reaction_met=is_task(issue.issuetype) or is_compliant(summary.reaction_minutes, targets.reaction),
        resolution_met=is_compliant(summary.resolution_minutes, targets.resolution),
        target_reaction=targets.reaction,
        target_resolution=targets.resolution,
        breakdown=summary.breakdown,
        reaction_breach_at=projection.reaction_at,
        resolution_breach_at=projection.resolution_at,
        changelog=list(issue.changelog),
    )


def evaluate_issues(
    issues: Iterable[IssueModel],
    config: SLAConfig | None = None,
    now: datetime | None = None,
) -> list[SLAIssueResult]:
    """Evaluate a batch against a single captured ``now``."""
    config = config or SLAConfig()
    now = now or datetime.now(UTC)
    return [evaluate_issue(issue, config, now) for issue in issues]
