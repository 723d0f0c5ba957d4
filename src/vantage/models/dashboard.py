"""Dashboard response data models.

Serialized with camelCase keys (``model_dump(by_alias=True)``). Defaults
describe the zeroed, empty dashboard returned when nothing is in scope.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DashboardModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EvidenceHealth(DashboardModel):
    high: int = 0
    medium: int = 0
    low: int = 0
    score: int = 0
    total: int = 0


class EvidenceFreshness(DashboardModel):
    valid: int = 0
    outdated: int = 0
    expiring_soon: int = 0
    expired: int = 0
    missing: int = 0
    total: int = 0


class AuditReadiness(DashboardModel):
    percent: int = 0
    accepted_controls: int = 0
    total_controls: int = 0
    missing_policies: int = 0
    missing_logs: int = 0


class SubmissionReadiness(DashboardModel):
    percent: int = 0
    submitted: int = 0
    reviewed: int = 0


class Metrics(DashboardModel):
    coverage_percent: int = 0
    total_controls: int = 0
    evaluated_controls: int = 0
    compliant: int = 0
    partial: int = 0
    not_compliant: int = 0
    unknown: int = 0
    evidence_items: int = 0
    awaiting_review: int = 0
    open_risks: int = 0
    overdue_evidence: int = 0
    last_review_at: Optional[str] = None
    evidence_health: EvidenceHealth = EvidenceHealth()
    evidence_freshness: EvidenceFreshness = EvidenceFreshness()
    audit_readiness: AuditReadiness = AuditReadiness()
    submission_readiness: SubmissionReadiness = SubmissionReadiness()


class ComplianceBreakdown(DashboardModel):
    compliant: int = 0
    partial: int = 0
    not_compliant: int = 0
    unknown: int = 0
    total: int = 0
    compliant_pct: int = 0
    partial_pct: int = 0
    not_compliant_pct: int = 0
    unknown_pct: int = 0


class RiskCell(DashboardModel):
    impact: int
    likelihood: int
    count: int = 0
    score: int = 0
    bucket: str = "low"


class RiskHeatmap(DashboardModel):
    impact_labels: list[str] = []
    likelihood_labels: list[str] = []
    matrix: list[list[int]] = []
    cells: list[RiskCell] = []


class RiskDistribution(DashboardModel):
    high: int = 0
    medium: int = 0
    low: int = 0
    total: int = 0
    exposure: str = "none"


class HeatmapCellControls(DashboardModel):
    impact: int
    likelihood: int
    bucket: str
    control_codes: list[str] = []


class GapRecord(DashboardModel):
    reason_id: str
    label: str
    count: int = 0


class DriverRecord(GapRecord):
    """A dominant contributor to risk exposure."""


class TrendSeries(DashboardModel):
    name: str
    unit: str
    values: list[float] = []


class Trends(DashboardModel):
    range_days: int = 0
    labels: list[str] = []
    series: list[TrendSeries] = []


class FrameworkProgress(DashboardModel):
    framework: str
    labels: list[str] = []
    series: list[int] = []
    current: int = 0
    delta: int = 0


class KpiTile(DashboardModel):
    id: str
    label: str
    value: str
    note: str = ""
    severity: str = "low"
    drilldown: str = ""


class ExecutiveSummary(DashboardModel):
    headline: str = ""
    highlights: list[str] = []


class RecommendedAction(DashboardModel):
    id: str
    title: str
    reason: str
    severity: str
    count: int = 0
    drilldown: str = ""


class AuditSummary(DashboardModel):
    readiness_percent: int = 0
    accepted_controls: int = 0
    total_controls: int = 0
    missing_policies: int = 0
    missing_logs: int = 0
    reviewed_documents: int = 0
    submitted_documents: int = 0
    awaiting_review: int = 0
    overdue_evidence: int = 0
    last_review_at: Optional[str] = None


class ControlCount(DashboardModel):
    control_id: str
    count: int = 0


class UploadSummary(DashboardModel):
    total_uploaded_documents: int = 0
    distinct_matched_controls: int = 0
    documents_per_control: list[ControlCount] = []


class RiskCoverage(DashboardModel):
    id: str
    title: str
    coverage_percent: int = 0
    control_count: int = 0
    missing_count: int = 0
    control_codes: list[str] = []


class RiskControl(DashboardModel):
    control_id: str
    control_db_id: Optional[str] = None
    title: Optional[str] = None
    status: str
    summary: str
    updated_at: Optional[str] = None


class ActivityItem(DashboardModel):
    label: str
    detail: str
    time: str


class FilterOptions(DashboardModel):
    frameworks: list[str] = []
    business_units: list[str] = []
    risk_categories: list[str] = []


class AppliedFilters(DashboardModel):
    framework: Optional[str] = None
    business_unit: Optional[str] = None
    risk_category: Optional[str] = None
    range_days: int = 90


class DashboardResponse(DashboardModel):
    """Full dashboard payload for one request."""

    ok: bool = True
    generated_at: Optional[str] = None
    metrics: Metrics = Metrics()
    compliance_breakdown: ComplianceBreakdown = ComplianceBreakdown()
    risk_heatmap: RiskHeatmap = RiskHeatmap()
    risk_distribution: RiskDistribution = RiskDistribution()
    risk_heatmap_controls: list[HeatmapCellControls] = []
    risk_drivers: list[DriverRecord] = []
    compliance_gaps: list[GapRecord] = []
    trends_v2: Trends = Trends()
    framework_comparison_v2: list[FrameworkProgress] = []
    kpis: list[KpiTile] = []
    executive_summary: ExecutiveSummary = ExecutiveSummary()
    recommended_actions_v2: list[RecommendedAction] = []
    audit_summary: AuditSummary = AuditSummary()
    upload_summary: UploadSummary = UploadSummary()
    risk_coverage: list[RiskCoverage] = []
    risk_controls: list[RiskControl] = []
    activity: list[ActivityItem] = []
    filter_options: FilterOptions = FilterOptions()
    applied_filters: AppliedFilters = AppliedFilters()
