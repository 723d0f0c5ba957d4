"""Tests for core/engine.py."""

from __future__ import annotations

import pytest

from vantage.core.engine import (
    DashboardFilters,
    active_frameworks,
    build_dashboard,
    parse_filters,
    select_framework,
)
from vantage.models.snapshot import Snapshot


class TestParseFilters:
    def test_defaults(self):
        filters = parse_filters()
        assert filters == DashboardFilters(range_days=90)

    def test_clamps_and_cleans(self):
        filters = parse_filters(framework="  ", business_unit="EMEA", range_days="400")
        assert filters.framework is None
        assert filters.business_unit == "EMEA"
        assert filters.range_days == 365

    def test_bad_range_falls_back(self):
        assert parse_filters(range_days="soon").range_days == 90


class TestSelectFramework:
    def test_most_recently_updated(self, sample_snapshot):
        assert [fw.name for fw in active_frameworks(sample_snapshot)] == ["ISO27001", "SOC2"]
        assert select_framework(sample_snapshot, None).name == "ISO27001"

    def test_requested_case_insensitive(self, sample_snapshot):
        assert select_framework(sample_snapshot, "soc2").name == "SOC2"

    def test_unknown_or_inactive(self, sample_snapshot):
        assert select_framework(sample_snapshot, "LEGACY") is None
        assert select_framework(sample_snapshot, "NIST") is None


class TestBuildDashboard:
    def test_sample_metrics(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, now=now)
        metrics = response.metrics

        assert response.applied_filters.framework == "ISO27001"
        assert metrics.total_controls == 4
        assert metrics.coverage_percent == 40
        assert (metrics.compliant, metrics.partial, metrics.not_compliant, metrics.unknown) == (1, 1, 1, 1)
        assert metrics.evaluated_controls == 3
        assert metrics.evidence_items == 3
        assert metrics.open_risks == 2
        assert metrics.awaiting_review == 2
        assert metrics.overdue_evidence == 1
        assert metrics.last_review_at == "2026-06-10T00:00:00Z"
        assert metrics.evidence_health.score == 75
        assert metrics.audit_readiness.percent == 25
        assert response.generated_at == "2026-06-15T12:00:00Z"

    def test_sample_components(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, now=now)

        assert response.risk_distribution.exposure == "high"
        assert [g.reason_id for g in response.compliance_gaps] == ["control-not-implemented", "missing-evidence"]
        assert [d.reason_id for d in response.risk_drivers] == ["missing-evidence"]
        assert [a.id for a in response.recommended_actions_v2] == [
            "failed-controls",
            "missing-evidence",
            "unowned-risks",
            "overdue-controls",
        ]
        assert [p.framework for p in response.framework_comparison_v2] == ["ISO27001", "SOC2"]
        assert response.filter_options.frameworks == ["ISO27001", "SOC2"]
        assert response.filter_options.business_units == []
        assert response.executive_summary.headline == "ISO27001: 40% coverage across 4 controls"
        assert response.audit_summary.readiness_percent == 25
        assert {tile.id: tile.value for tile in response.kpis}["mttr"] == "10 days"

    def test_invariants(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, now=now)
        total = response.metrics.total_controls
        breakdown = response.compliance_breakdown
        non_compliant = total - breakdown.compliant

        assert breakdown.compliant + breakdown.partial + breakdown.not_compliant + breakdown.unknown == total
        assert 0 <= response.metrics.coverage_percent <= 100
        assert sum(sum(row) for row in response.risk_heatmap.matrix) == total
        assert response.risk_distribution.total == total
        assert sum(g.count for g in response.compliance_gaps) <= non_compliant
        assert sum(d.count for d in response.risk_drivers) <= non_compliant

    def test_idempotent(self, sample_snapshot, now):
        first = build_dashboard(sample_snapshot, now=now).model_dump_json(by_alias=True)
        second = build_dashboard(sample_snapshot, now=now).model_dump_json(by_alias=True)
        assert first == second

    def test_range_days_applied(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, parse_filters(range_days=400), now=now)
        assert response.trends_v2.range_days == 365
        assert len(response.trends_v2.labels) == 365
        assert response.applied_filters.range_days == 365

    @pytest.mark.parametrize("requested,expected", [(400, 365), (0, 30)])
    def test_direct_filters_clamped(self, sample_snapshot, now, requested, expected):
        response = build_dashboard(sample_snapshot, DashboardFilters(range_days=requested), now=now)
        assert response.applied_filters.range_days == expected
        assert len(response.trends_v2.labels) == expected
        assert all(len(series.values) == expected for series in response.trends_v2.series)

    def test_explicit_framework(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, parse_filters(framework="SOC2"), now=now)
        assert response.metrics.total_controls == 2
        assert response.metrics.coverage_percent == 100
        assert response.applied_filters.framework == "SOC2"

    def test_config_override(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, now=now, config={"scoring": {"partial_weight": 1.0}})
        assert response.metrics.coverage_percent == 50


class TestEmptyScope:
    def test_zero_active_frameworks(self, now):
        snapshot = Snapshot.from_payload({
            "frameworks": [{"name": "ISO27001", "status": "disabled"}],
            "controls": [{"id": "c1", "frameworkMappings": ["ISO27001"]}],
        })
        response = build_dashboard(snapshot, now=now)
        assert response.metrics.total_controls == 0
        assert response.metrics.coverage_percent == 0
        assert response.risk_heatmap.matrix == []
        assert response.kpis == []
        assert response.trends_v2.labels == []
        assert response.risk_distribution.exposure == "none"
        assert response.filter_options.frameworks == []

    def test_unknown_framework(self, sample_snapshot, now):
        response = build_dashboard(sample_snapshot, parse_filters(framework="NIST"), now=now)
        assert response.ok
        assert response.metrics.total_controls == 0
        assert response.applied_filters.framework == "NIST"
        assert response.filter_options.frameworks == ["ISO27001", "SOC2"]

    def test_framework_without_enabled_controls(self, now):
        snapshot = Snapshot.from_payload({
            "frameworks": [{"name": "ISO27001"}],
            "controls": [{"id": "c1", "status": "disabled", "frameworkMappings": ["ISO27001"]}],
        })
        response = build_dashboard(snapshot, now=now)
        assert response.metrics.total_controls == 0
        assert response.applied_filters.framework == "ISO27001"

    @pytest.mark.parametrize("payload", [{}, {"frameworks": []}])
    def test_empty_snapshot(self, payload, now):
        response = build_dashboard(Snapshot.from_payload(payload), now=now)
        assert response.compliance_gaps == []
        assert response.framework_comparison_v2 == []
