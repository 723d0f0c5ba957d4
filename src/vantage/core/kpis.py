"""KPI tiles and executive summary assembly."""

from __future__ import annotations

from typing import Optional

from ..models.dashboard import (
    ExecutiveSummary,
    GapRecord,
    KpiTile,
    Metrics,
    RiskDistribution,
)


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def percent_severity(value: int, high_below: int = 60, medium_below: int = 80) -> str:
    """Severity for coverage-like metrics, where higher is better."""
    if value < high_below:
        return "high"
    if value < medium_below:
        return "medium"
    return "low"


def count_severity(count: int, nonzero: str = "high") -> str:
    """Severity for incident-like counts: any occurrence is a signal."""
    return nonzero if count > 0 else "low"


def build_kpis(metrics: Metrics, mttr_days: float, kpi_config: Optional[dict] = None) -> list[KpiTile]:
    cfg = kpi_config or {}
    high_below = cfg.get("high_below", 60)
    medium_below = cfg.get("medium_below", 80)
    mttr_warn_days = cfg.get("mttr_warn_days", 30)

    health = metrics.evidence_health
    audit = metrics.audit_readiness
    submission = metrics.submission_readiness

    return [
        KpiTile(
            id="coverage",
            label="Overall Coverage",
            value=f"{metrics.coverage_percent}%",
            note=f"{metrics.compliant + metrics.partial}/{metrics.evaluated_controls} controls reviewed",
            severity=percent_severity(metrics.coverage_percent, high_below, medium_below),
            drilldown="/controls",
        ),
        KpiTile(
            id="evidence-health",
            label="Evidence Health Score",
            value=f"{health.score}%",
            note=f"High {health.high}, Medium {health.medium}, Low {health.low}",
            severity=percent_severity(health.score, high_below, medium_below),
            drilldown="/evidence",
        ),
        KpiTile(
            id="audit-readiness",
            label="Audit Pack Readiness",
            value=f"{audit.percent}%",
            note=f"Missing policies {audit.missing_policies}, missing logs {audit.missing_logs}",
            severity=percent_severity(audit.percent, high_below, medium_below),
            drilldown="/audit",
        ),
        KpiTile(
            id="submission-readiness",
            label="Submission Readiness",
            value=f"{submission.percent}%",
            note=f"{submission.submitted}/{submission.reviewed} submitted",
            severity=percent_severity(submission.percent, high_below, medium_below),
            drilldown="/uploads",
        ),
        KpiTile(
            id="failed-controls",
            label="Failed Controls",
            value=str(metrics.not_compliant),
            note=f"{metrics.partial} partial, {metrics.unknown} unknown",
            severity=count_severity(metrics.not_compliant, "high"),
            drilldown="/controls?status=NOT_COMPLIANT",
        ),
        KpiTile(
            id="overdue-evidence",
            label="Overdue Evidence",
            value=str(metrics.overdue_evidence),
            note=f"{metrics.awaiting_review} awaiting review",
            severity=count_severity(metrics.overdue_evidence, "medium"),
            drilldown="/evidence?review=overdue",
        ),
        KpiTile(
            id="mttr",
            label="Mean Time to Resolve",
            value=f"{mttr_days:g} days",
            note="Not compliant to compliant",
            severity="medium" if mttr_days > mttr_warn_days else "low",
            drilldown="/trends",
        ),
    ]


def build_executive_summary(
    framework: Optional[str],
    metrics: Metrics,
    distribution: RiskDistribution,
    gaps: list[GapRecord],
    mttr_days: float,
) -> ExecutiveSummary:
    scope = framework or "All frameworks"
    headline = (
        f"{scope}: {metrics.coverage_percent}% coverage across "
        f"{plural(metrics.total_controls, 'control')}"
    )

    highlights = [
        f"{plural(metrics.not_compliant, 'control')} not compliant, {metrics.partial} partial",
        (
            f"Risk exposure is {distribution.exposure}: {distribution.high} high, "
            f"{distribution.medium} medium, {distribution.low} low"
        ),
    ]
    if gaps:
        top = gaps[0]
        highlights.append(f"Top gap: {top.label} ({plural(top.count, 'control')})")

    freshness = metrics.evidence_freshness
    if freshness.expired or freshness.expiring_soon:
        highlights.append(
            f"{plural(freshness.expired, 'control')} with expired evidence, "
            f"{freshness.expiring_soon} expiring soon"
        )
    if mttr_days > 0:
        highlights.append(f"Mean time to resolve: {mttr_days:g} days")

    return ExecutiveSummary(headline=headline, highlights=highlights)
