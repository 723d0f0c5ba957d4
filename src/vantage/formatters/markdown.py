"""Markdown rendering of a dashboard response."""

from __future__ import annotations

from typing import Optional

from ..models.dashboard import DashboardResponse

SEVERITY_LABELS = {"high": "HIGH", "medium": "MEDIUM", "low": "LOW"}


def _heatmap_table(response: DashboardResponse) -> list[str]:
    heatmap = response.risk_heatmap
    if not heatmap.matrix:
        return ["_No controls in scope._"]

    lines = ["| Impact \\ Likelihood | " + " | ".join(heatmap.likelihood_labels) + " |"]
    lines.append("|" + "---|" * (len(heatmap.likelihood_labels) + 1))
    # Highest impact on top
    for impact_label, row in reversed(list(zip(heatmap.impact_labels, heatmap.matrix))):
        lines.append(f"| {impact_label} | " + " | ".join(str(count) for count in row) + " |")
    return lines


def generate_dashboard_report(response: DashboardResponse, project_name: Optional[str] = None) -> str:
    """Render the dashboard as a Markdown report."""
    metrics = response.metrics
    applied = response.applied_filters

    lines: list[str] = []
    lines.append("# Compliance Dashboard")
    lines.append("")
    if project_name:
        lines.append(f"**Project:** {project_name}")
    lines.append(f"**Framework:** {applied.framework or 'none'}")
    lines.append(f"**Generated:** {response.generated_at or '-'}")
    lines.append(f"**Range:** {applied.range_days} days")
    lines.append("")

    if response.executive_summary.headline:
        lines.append("## Executive Summary")
        lines.append("")
        lines.append(response.executive_summary.headline)
        lines.append("")
        for highlight in response.executive_summary.highlights:
            lines.append(f"- {highlight}")
        lines.append("")

    lines.append("## Key Indicators")
    lines.append("")
    if response.kpis:
        lines.append("| KPI | Value | Severity | Note |")
        lines.append("|-----|-------|----------|------|")
        for tile in response.kpis:
            lines.append(
                f"| {tile.label} | {tile.value} | {SEVERITY_LABELS.get(tile.severity, tile.severity)} | {tile.note} |"
            )
    else:
        lines.append("_No controls in scope._")
    lines.append("")

    breakdown = response.compliance_breakdown
    lines.append("## Compliance Breakdown")
    lines.append("")
    lines.append("| Status | Controls | Share |")
    lines.append("|--------|----------|-------|")
    lines.append(f"| Compliant | {breakdown.compliant} | {breakdown.compliant_pct}% |")
    lines.append(f"| Partial | {breakdown.partial} | {breakdown.partial_pct}% |")
    lines.append(f"| Not compliant | {breakdown.not_compliant} | {breakdown.not_compliant_pct}% |")
    lines.append(f"| Unknown | {breakdown.unknown} | {breakdown.unknown_pct}% |")
    lines.append(f"| **Total** | **{breakdown.total}** | |")
    lines.append("")
    lines.append(f"Coverage: **{metrics.coverage_percent}%**")
    lines.append("")

    distribution = response.risk_distribution
    lines.append("## Risk Heatmap")
    lines.append("")
    lines.extend(_heatmap_table(response))
    lines.append("")
    lines.append(
        f"Exposure: **{distribution.exposure}** "
        f"(high {distribution.high}, medium {distribution.medium}, low {distribution.low})"
    )
    lines.append("")

    if response.compliance_gaps:
        lines.append("## Compliance Gaps")
        lines.append("")
        for gap in response.compliance_gaps:
            lines.append(f"- {gap.label}: {gap.count}")
        lines.append("")

    if response.risk_drivers:
        lines.append("## Risk Drivers")
        lines.append("")
        for driver in response.risk_drivers:
            lines.append(f"- {driver.label}: {driver.count}")
        lines.append("")

    if response.recommended_actions_v2:
        lines.append("## Recommended Actions")
        lines.append("")
        for i, action in enumerate(response.recommended_actions_v2, 1):
            lines.append(f"{i}. **[{SEVERITY_LABELS.get(action.severity, action.severity)}]** {action.title}: {action.reason}")
        lines.append("")

    if response.framework_comparison_v2:
        lines.append("## Framework Comparison")
        lines.append("")
        labels = response.framework_comparison_v2[0].labels
        lines.append("| Framework | " + " | ".join(labels) + " | Delta |")
        lines.append("|" + "---|" * (len(labels) + 2))
        for progress in response.framework_comparison_v2:
            cells = " | ".join(f"{value}%" for value in progress.series)
            lines.append(f"| {progress.framework} | {cells} | {progress.delta:+d} |")
        lines.append("")

    if response.activity:
        lines.append("## Recent Activity")
        lines.append("")
        for item in response.activity:
            lines.append(f"- {item.time} {item.label}: {item.detail}")
        lines.append("")

    return "\n".join(lines)
