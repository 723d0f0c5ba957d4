"""Risk heatmap: impact x likelihood per control, exposure buckets, risk coverage."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..models.dashboard import (
    HeatmapCellControls,
    RiskCell,
    RiskControl,
    RiskCoverage,
    RiskDistribution,
    RiskHeatmap,
)
from ..models.snapshot import ComplianceStatus
from ..models.status import StatusSource
from ..utils.dates import age_days, percent, to_iso
from .aggregation import PARTIAL_WEIGHT, status_credit
from .index import ControlIndex
from .status import StatusMap

LEVEL_LABELS = ["Low", "Medium", "High"]
BUCKET_ORDER = ("high", "medium", "low")

IMPACT_BY_STATUS = {
    ComplianceStatus.NOT_COMPLIANT: 3,
    ComplianceStatus.PARTIAL: 2,
    ComplianceStatus.COMPLIANT: 1,
    ComplianceStatus.UNKNOWN: 2,
}


def impact_level(status: ComplianceStatus) -> int:
    return IMPACT_BY_STATUS.get(status, 2)


def likelihood_level(
    last_seen: Optional[datetime],
    now: datetime,
    fresh_days: int = 14,
    stale_days: int = 90,
) -> int:
    """Older (or absent) evidence makes a failure more likely to go unnoticed."""
    if last_seen is None:
        return 2
    days = age_days(last_seen, now)
    if days <= fresh_days:
        return 1
    if days <= stale_days:
        return 2
    return 3


def cell_bucket(impact: int, likelihood: int, high_score: int = 5, medium_score: int = 4) -> str:
    score = impact + likelihood
    if score >= high_score:
        return "high"
    if score >= medium_score:
        return "medium"
    return "low"


def build_heatmap(
    index: ControlIndex,
    statuses: StatusMap,
    now: datetime,
    risk_config: Optional[dict] = None,
) -> tuple[RiskHeatmap, RiskDistribution, list[HeatmapCellControls]]:
    """Place every control in one matrix cell and roll cells into buckets."""
    cfg = risk_config or {}
    fresh_days = cfg.get("fresh_days", 14)
    stale_days = cfg.get("stale_days", 90)
    high_score = cfg.get("high_score", 5)
    medium_score = cfg.get("medium_score", 4)

    matrix = [[0, 0, 0] for _ in range(3)]
    codes: dict[tuple[int, int], list[str]] = {}
    for control_id, context in index.items():
        record = statuses[control_id]
        impact = impact_level(record.status)
        likelihood = likelihood_level(record.last_seen, now, fresh_days, stale_days)
        matrix[impact - 1][likelihood - 1] += 1
        codes.setdefault((impact, likelihood), []).append(context.control.code)

    cells: list[RiskCell] = []
    distribution = {bucket: 0 for bucket in BUCKET_ORDER}
    for impact in (1, 2, 3):
        for likelihood in (1, 2, 3):
            count = matrix[impact - 1][likelihood - 1]
            bucket = cell_bucket(impact, likelihood, high_score, medium_score)
            distribution[bucket] += count
            cells.append(RiskCell(
                impact=impact,
                likelihood=likelihood,
                count=count,
                score=impact + likelihood,
                bucket=bucket,
            ))

    exposure = next((bucket for bucket in BUCKET_ORDER if distribution[bucket] > 0), "none")

    cell_controls = [
        HeatmapCellControls(
            impact=impact,
            likelihood=likelihood,
            bucket=cell_bucket(impact, likelihood, high_score, medium_score),
            control_codes=sorted(members),
        )
        for (impact, likelihood), members in sorted(
            codes.items(),
            key=lambda item: (-(item[0][0] + item[0][1]), -item[0][0], item[0][1]),
        )
    ]

    heatmap = RiskHeatmap(
        impact_labels=list(LEVEL_LABELS),
        likelihood_labels=list(LEVEL_LABELS),
        matrix=matrix,
        cells=cells,
    )
    risk_distribution = RiskDistribution(
        high=distribution["high"],
        medium=distribution["medium"],
        low=distribution["low"],
        total=sum(distribution.values()),
        exposure=exposure,
    )
    return heatmap, risk_distribution, cell_controls


def build_risk_coverage(
    index: ControlIndex,
    statuses: StatusMap,
    partial_weight: float = PARTIAL_WEIGHT,
    limit: int = 8,
) -> list[RiskCoverage]:
    """Weighted coverage of each mapped risk, least covered first."""
    risks: dict[str, dict] = {}
    for control_id, context in index.items():
        for risk in context.control.risks:
            entry = risks.setdefault(risk.id, {"title": risk.title or risk.id, "controls": []})
            if control_id not in entry["controls"]:
                entry["controls"].append(control_id)

    rows: list[RiskCoverage] = []
    for risk_id, entry in risks.items():
        credits = [status_credit(statuses[cid].status, partial_weight) for cid in entry["controls"]]
        rows.append(RiskCoverage(
            id=risk_id,
            title=entry["title"],
            coverage_percent=percent(sum(credits), len(credits)),
            control_count=len(credits),
            missing_count=sum(1 for credit in credits if credit < 1),
            control_codes=sorted(index[cid].control.code for cid in entry["controls"]),
        ))

    rows.sort(key=lambda row: (row.coverage_percent, row.id))
    return rows[:limit]


def build_risk_controls(index: ControlIndex, statuses: StatusMap, limit: int = 6) -> list[RiskControl]:
    """Controls whose latest evaluation failed or was partial, NOT_COMPLIANT first, newest first."""
    at_risk = [
        record for record in statuses.values()
        if record.source == StatusSource.EVALUATION
        and record.status in (ComplianceStatus.NOT_COMPLIANT, ComplianceStatus.PARTIAL)
    ]
    at_risk.sort(key=lambda r: (r.last_seen.timestamp() if r.last_seen else 0.0), reverse=True)
    at_risk.sort(key=lambda r: 0 if r.status == ComplianceStatus.NOT_COMPLIANT else 1)

    rows: list[RiskControl] = []
    for record in at_risk[:limit]:
        context = index[record.control_id]
        latest = context.latest_evaluation
        rows.append(RiskControl(
            control_id=context.control.code,
            control_db_id=context.control.id,
            title=context.control.display_title,
            status=record.status.value,
            summary=(latest.summary if latest and latest.summary else "Evidence gap detected."),
            updated_at=to_iso(record.last_seen),
        ))
    return rows
