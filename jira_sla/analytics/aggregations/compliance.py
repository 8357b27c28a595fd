"""SLA compliance aggregations (per priority, per tier, per tolerance group)."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from jira_sla.core.mappers import results_to_dataframe
from jira_sla.core.models import PriorityStats, SLAIssueResult, SLAReport, TierCompliance
from jira_sla.core.sla_config import SLAConfig, ToleranceGroup
from jira_sla.core.status import is_rejected_status


def _percent(part: int, total: int) -> float:
    return (part / total) * 100.0 if total > 0 else 100.0


def _within(percent: float, tolerance: float | None) -> bool:
    if tolerance is None:
        return True
    return (100.0 - percent) <= tolerance + 1e-9


def aggregate_by_priority(df: pd.DataFrame) -> dict[str, PriorityStats]:
    if df.empty:
        return {}
    agg = (
        df.groupby("priority", dropna=False, sort=True)
        .agg(total=("key", "count"), met=("resolution_met", "sum"))
        .reset_index()
    )
    out: dict[str, PriorityStats] = {}
    for row in agg.itertuples(index=False):
        total, met = int(row.total), int(row.met)
        out[str(row.priority)] = PriorityStats(total=total, met=met, missed=total - met)
    return out


def _tier_compliance(
    df: pd.DataFrame,
    name: str,
    tiers: Sequence[str],
    reaction_tolerance: float | None,
    resolution_tolerance: float | None,
) -> TierCompliance:
    subset = df[df["tier"].isin(list(tiers))] if not df.empty else df
    total = len(subset)
    reaction_pct = _percent(int(subset["reaction_met"].sum()) if total else 0, total)
    resolution_pct = _percent(int(subset["resolution_met"].sum()) if total else 0, total)
    return TierCompliance(
        name=name,
        tiers=list(tiers),
        total=total,
        reaction_percent=round(reaction_pct, 2),
        resolution_percent=round(resolution_pct, 2),
        reaction_tolerance=reaction_tolerance,
        resolution_tolerance=resolution_tolerance,
        reaction_within_tolerance=_within(reaction_pct, reaction_tolerance),
        resolution_within_tolerance=_within(resolution_pct, resolution_tolerance),
    )


def aggregate_by_tier(df: pd.DataFrame, config: SLAConfig) -> dict[str, TierCompliance]:
    return {
        tier: _tier_compliance(
            df,
            tier,
            [tier],
            config.reaction_tolerances.get(tier),
            config.resolution_tolerances.get(tier),
        )
        for tier in config.tiers
    }


def aggregate_by_group(df: pd.DataFrame, config: SLAConfig) -> dict[str, TierCompliance]:
    """Compliance per tolerance group.

    A group listed under ``reaction`` carries a reaction tolerance, one under
    ``resolution`` a resolution tolerance; a group id present in both gets
    both (tiers taken from its first definition).
    """
    merged: dict[str, tuple[ToleranceGroup, float | None, float | None]] = {}
    for group in config.reaction_groups:
        merged[group.id] = (group, group.tolerance, None)
    for group in config.resolution_groups:
        if group.id in merged:
            first, reaction_tol, _ = merged[group.id]
            merged[group.id] = (first, reaction_tol, group.tolerance)
        else:
            merged[group.id] = (group, None, group.tolerance)
    return {
        gid: _tier_compliance(df, group.name, group.tiers, reaction_tol, resolution_tol)
        for gid, (group, reaction_tol, resolution_tol) in merged.items()
    }


def build_report(
    results: Sequence[SLAIssueResult],
    config: SLAConfig | None = None,
    *,
    exclude_rejected: bool = False,
    skipped_rows: int = 0,
) -> SLAReport:
    """Aggregate per-issue results into an SLA report.

    Rejected issues are always counted in ``rejected_count``; with
    ``exclude_rejected`` they are also left out of every statistic (but kept
    in ``issues``).
    """
    config = config or SLAConfig()
    rejected = [r for r in results if is_rejected_status(r.status)]
    population = [r for r in results if not (exclude_rejected and is_rejected_status(r.status))]
    df = results_to_dataframe(population)

    total = len(population)
    met_resolution = int(df["resolution_met"].sum()) if total else 0
    met_both = int((df["resolution_met"] & df["reaction_met"]).sum()) if total else 0

    return SLAReport(
        total_issues=total,
        met_resolution=met_resolution,
        missed_resolution=total - met_resolution,
        compliance_percent=round(_percent(met_resolution, total), 2),
        overall_compliance_percent=round(_percent(met_both, total), 2),
        by_priority=aggregate_by_priority(df),
        by_tier=aggregate_by_tier(df, config),
        by_group=aggregate_by_group(df, config),
        rejected_count=len(rejected),
        skipped_rows=skipped_rows,
        issues=list(results),
    )
