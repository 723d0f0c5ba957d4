"""Dashboard engine: scope a snapshot and assemble one DashboardResponse.

The engine is pure. Every time-dependent rule reads the single ``now``
captured (or pinned) at the start of ``build_dashboard``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from ..models.dashboard import AppliedFilters, AuditSummary, DashboardResponse, FilterOptions, Metrics
from ..models.snapshot import Control, Framework, Snapshot
from ..utils.dates import to_iso, utc_now
from .audit import (
    build_activity,
    build_audit_readiness,
    build_submission_readiness,
    build_upload_summary,
    count_evaluated_controls,
    last_review_at,
    review_backlog,
)
from .aggregation import build_breakdown, coverage_percent
from .config import DEFAULT_CONFIG, deep_merge
from .evidence import score_evidence_freshness, score_evidence_health
from .gaps import classify_gaps, non_compliant_subjects, rank_drivers
from .heatmap import build_heatmap, build_risk_controls, build_risk_coverage
from .index import build_index
from .kpis import build_executive_summary, build_kpis
from .recommendations import Signals, build_recommendations
from .status import resolve_statuses
from .trends import build_framework_comparison, build_trends, clamp_range_days

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DashboardFilters:
    framework: Optional[str] = None
    business_unit: Optional[str] = None
    risk_category: Optional[str] = None
    range_days: int = 90


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_filters(
    framework: Optional[str] = None,
    business_unit: Optional[str] = None,
    risk_category: Optional[str] = None,
    range_days: object = None,
    scope_config: Optional[dict] = None,
) -> DashboardFilters:
    """Normalize raw request filters. A bad ``range_days`` falls back to the default."""
    cfg = scope_config or DEFAULT_CONFIG["scope"]
    return DashboardFilters(
        framework=_clean(framework) or _clean(cfg.get("framework")),
        business_unit=_clean(business_unit),
        risk_category=_clean(risk_category),
        range_days=scoped_range_days(range_days, cfg),
    )


def scoped_range_days(value: object, scope_config: dict) -> int:
    default = scope_config.get("range_days", 90)
    return clamp_range_days(
        default if value is None else value,
        default,
        scope_config.get("min_range_days", 30),
        scope_config.get("max_range_days", 365),
    )


def active_frameworks(snapshot: Snapshot) -> list[Framework]:
    """Active frameworks, most recently updated first."""
    active = [fw for fw in snapshot.frameworks if fw.active and fw.name.strip()]
    return sorted(active, key=lambda fw: fw.updated_at or _EPOCH, reverse=True)


def select_framework(snapshot: Snapshot, requested: Optional[str]) -> Optional[Framework]:
    frameworks = active_frameworks(snapshot)
    if not frameworks:
        return None
    if requested:
        wanted = requested.strip().lower()
        return next((fw for fw in frameworks if fw.name.strip().lower() == wanted), None)
    return frameworks[0]


def scope_controls(snapshot: Snapshot, framework: Framework) -> list[Control]:
    return [
        control for control in snapshot.controls
        if control.enabled and framework.name in control.framework_mappings
    ]


def empty_dashboard(
    filters: DashboardFilters,
    snapshot: Optional[Snapshot] = None,
    now: Optional[datetime] = None,
) -> DashboardResponse:
    """The zeroed response returned when nothing is in scope."""
    options = sorted(fw.name for fw in active_frameworks(snapshot)) if snapshot else []
    return DashboardResponse(
        generated_at=to_iso(now),
        filter_options=FilterOptions(frameworks=options),
        applied_filters=AppliedFilters(
            framework=filters.framework,
            business_unit=filters.business_unit,
            risk_category=filters.risk_category,
            range_days=filters.range_days,
        ),
    )


def build_dashboard(
    snapshot: Snapshot,
    filters: Optional[DashboardFilters] = None,
    now: Optional[datetime] = None,
    config: Optional[dict] = None,
) -> DashboardResponse:
    """Compute the full dashboard for one snapshot."""
    now = now or utc_now()
    cfg = deep_merge(copy.deepcopy(DEFAULT_CONFIG), config or {})
    filters = filters or parse_filters(scope_config=cfg["scope"])
    filters = replace(filters, range_days=scoped_range_days(filters.range_days, cfg["scope"]))
    weight = cfg["scoring"]["partial_weight"]

    framework = select_framework(snapshot, filters.framework)
    if framework is None:
        return empty_dashboard(filters, snapshot, now)
    controls = scope_controls(snapshot, framework)
    if not controls:
        return empty_dashboard(DashboardFilters(
            framework=framework.name,
            business_unit=filters.business_unit,
            risk_category=filters.risk_category,
            range_days=filters.range_days,
        ), snapshot, now)

    index = build_index(controls, snapshot.evaluations, snapshot.documents)
    statuses = resolve_statuses(index)
    status_values = [record.status for record in statuses.values()]

    breakdown = build_breakdown(status_values)
    heatmap, distribution, cell_controls = build_heatmap(index, statuses, now, cfg["risk"])
    health = score_evidence_health(index, weight, cfg["evidence"])
    freshness = score_evidence_freshness(index, now, cfg["evidence"])
    backlog = review_backlog(index, now, cfg["review"]["overdue_days"])
    subjects = non_compliant_subjects(index, statuses, now, cfg["gaps"])
    gaps = classify_gaps(subjects, cfg["gaps"]["top_gaps"])
    drivers = rank_drivers(subjects, cfg["gaps"]["top_drivers"])
    trends = build_trends(index, now, filters.range_days, weight)
    audit = build_audit_readiness(index)
    submission = build_submission_readiness(index)
    reviewed_at = last_review_at(index)

    frameworks = active_frameworks(snapshot)
    comparison_targets = [framework] + sorted(
        (fw for fw in frameworks if fw.name != framework.name), key=lambda fw: fw.name
    )
    comparison_index = build_index(
        [c for c in snapshot.controls if c.enabled and c.framework_mappings],
        snapshot.evaluations,
        snapshot.documents,
    )
    comparison = build_framework_comparison(
        comparison_index, comparison_targets, now, cfg["scope"]["comparison_months"], weight
    )

    metrics = Metrics(
        coverage_percent=coverage_percent(status_values, weight),
        total_controls=len(index),
        evaluated_controls=count_evaluated_controls(statuses),
        compliant=breakdown.compliant,
        partial=breakdown.partial,
        not_compliant=breakdown.not_compliant,
        unknown=breakdown.unknown,
        evidence_items=sum(len(ctx.documents) for ctx in index.values()),
        awaiting_review=backlog.awaiting_review,
        open_risks=breakdown.partial + breakdown.not_compliant,
        overdue_evidence=backlog.overdue_evidence,
        last_review_at=to_iso(reviewed_at),
        evidence_health=health,
        evidence_freshness=freshness,
        audit_readiness=audit,
        submission_readiness=submission,
    )

    mttr_series = trends.series[-1].values
    mttr_days = mttr_series[-1] if mttr_series else 0.0

    signals = Signals(
        failed_controls=breakdown.not_compliant,
        missing_evidence=freshness.missing,
        unowned_risks=sum(1 for subject in subjects if not subject.has_owner),
        overdue_controls=backlog.overdue_controls,
        overdue_days=cfg["review"]["overdue_days"],
    )

    return DashboardResponse(
        generated_at=to_iso(now),
        metrics=metrics,
        compliance_breakdown=breakdown,
        risk_heatmap=heatmap,
        risk_distribution=distribution,
        risk_heatmap_controls=cell_controls,
        risk_drivers=drivers,
        compliance_gaps=gaps,
        trends_v2=trends,
        framework_comparison_v2=comparison,
        kpis=build_kpis(metrics, mttr_days, cfg["kpis"]),
        executive_summary=build_executive_summary(framework.name, metrics, distribution, gaps, mttr_days),
        recommended_actions_v2=build_recommendations(signals),
        audit_summary=AuditSummary(
            readiness_percent=audit.percent,
            accepted_controls=audit.accepted_controls,
            total_controls=audit.total_controls,
            missing_policies=audit.missing_policies,
            missing_logs=audit.missing_logs,
            reviewed_documents=submission.reviewed,
            submitted_documents=submission.submitted,
            awaiting_review=backlog.awaiting_review,
            overdue_evidence=backlog.overdue_evidence,
            last_review_at=to_iso(reviewed_at),
        ),
        upload_summary=build_upload_summary(index),
        risk_coverage=build_risk_coverage(index, statuses, weight),
        risk_controls=build_risk_controls(index, statuses),
        activity=build_activity(index),
        filter_options=FilterOptions(frameworks=sorted(fw.name for fw in frameworks)),
        applied_filters=AppliedFilters(
            framework=framework.name,
            business_unit=filters.business_unit,
            risk_category=filters.risk_category,
            range_days=filters.range_days,
        ),
    )
