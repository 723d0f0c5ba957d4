"""Weighted coverage and status breakdown."""

from __future__ import annotations

from typing import Iterable

from ..models.dashboard import ComplianceBreakdown
from ..models.snapshot import ComplianceStatus
from ..utils.dates import percent

PARTIAL_WEIGHT = 0.6


def count_statuses(statuses: Iterable[ComplianceStatus]) -> dict[ComplianceStatus, int]:
    counts = {status: 0 for status in ComplianceStatus}
    for status in statuses:
        counts[status] += 1
    return counts


def status_credit(status: ComplianceStatus, partial_weight: float = PARTIAL_WEIGHT) -> float:
    """Credit a single control earns towards coverage."""
    if status == ComplianceStatus.COMPLIANT:
        return 1.0
    if status == ComplianceStatus.PARTIAL:
        return partial_weight
    return 0.0


def coverage_percent(
    statuses: Iterable[ComplianceStatus],
    partial_weight: float = PARTIAL_WEIGHT,
) -> int:
    """round(100 * (compliant + w * partial) / total); 0 when there are no controls."""
    counts = count_statuses(statuses)
    total = sum(counts.values())
    return percent(
        counts[ComplianceStatus.COMPLIANT] + partial_weight * counts[ComplianceStatus.PARTIAL],
        total,
    )


def build_breakdown(statuses: Iterable[ComplianceStatus]) -> ComplianceBreakdown:
    """Per-bucket counts and independently rounded percentages.

    The percentages are not adjusted to add up to exactly 100.
    """
    counts = count_statuses(statuses)
    total = sum(counts.values())
    return ComplianceBreakdown(
        compliant=counts[ComplianceStatus.COMPLIANT],
        partial=counts[ComplianceStatus.PARTIAL],
        not_compliant=counts[ComplianceStatus.NOT_COMPLIANT],
        unknown=counts[ComplianceStatus.UNKNOWN],
        total=total,
        compliant_pct=percent(counts[ComplianceStatus.COMPLIANT], total),
        partial_pct=percent(counts[ComplianceStatus.PARTIAL], total),
        not_compliant_pct=percent(counts[ComplianceStatus.NOT_COMPLIANT], total),
        unknown_pct=percent(counts[ComplianceStatus.UNKNOWN], total),
    )
