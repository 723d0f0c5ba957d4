"""Tests for core/heatmap.py."""

from __future__ import annotations

from datetime import timedelta

from vantage.core.heatmap import (
    build_heatmap,
    build_risk_controls,
    build_risk_coverage,
    cell_bucket,
    impact_level,
    likelihood_level,
)
from vantage.core.index import build_index
from vantage.core.status import resolve_statuses
from vantage.models.snapshot import ComplianceStatus
from vantage.models.status import StatusSource


def _scoped(snapshot, ids=("c1", "c2", "c3", "c4")):
    controls = [c for c in snapshot.controls if c.id in ids]
    index = build_index(controls, snapshot.evaluations, snapshot.documents)
    return index, resolve_statuses(index)


class TestLevels:
    def test_impact(self):
        assert impact_level(ComplianceStatus.NOT_COMPLIANT) == 3
        assert impact_level(ComplianceStatus.PARTIAL) == 2
        assert impact_level(ComplianceStatus.COMPLIANT) == 1
        assert impact_level(ComplianceStatus.UNKNOWN) == 2

    def test_likelihood(self, now):
        assert likelihood_level(None, now) == 2
        assert likelihood_level(now - timedelta(days=14), now) == 1
        assert likelihood_level(now - timedelta(days=15), now) == 2
        assert likelihood_level(now - timedelta(days=90), now) == 2
        assert likelihood_level(now - timedelta(days=91), now) == 3

    def test_buckets(self):
        assert cell_bucket(3, 3) == "high"
        assert cell_bucket(2, 3) == "high"
        assert cell_bucket(2, 2) == "medium"
        assert cell_bucket(1, 3) == "medium"
        assert cell_bucket(1, 2) == "low"


class TestBuildHeatmap:
    def test_sample_placement(self, sample_snapshot, now):
        index, statuses = _scoped(sample_snapshot)
        heatmap, distribution, cell_controls = build_heatmap(index, statuses, now)

        # c1 compliant, evaluated 96 days ago; c2 partial, 5 days; c3 unknown, no data; c4 failing, 156 days
        assert heatmap.matrix == [
            [0, 0, 1],
            [1, 1, 0],
            [0, 0, 1],
        ]
        assert (distribution.high, distribution.medium, distribution.low) == (1, 2, 1)
        assert distribution.total == 4
        assert distribution.exposure == "high"
        assert len(heatmap.cells) == 9

        assert cell_controls[0].control_codes == ["A.8.8"]
        assert cell_controls[0].bucket == "high"
        assert sorted(code for cell in cell_controls for code in cell.control_codes) == [
            "A.5.1", "A.5.9", "A.8.15", "A.8.8",
        ]

    def test_matrix_sum_equals_total(self, sample_snapshot, now):
        index, statuses = _scoped(sample_snapshot)
        heatmap, distribution, _ = build_heatmap(index, statuses, now)
        assert sum(sum(row) for row in heatmap.matrix) == len(index) == distribution.total

    def test_empty_index(self, now):
        heatmap, distribution, cell_controls = build_heatmap({}, {}, now)
        assert distribution.exposure == "none"
        assert distribution.total == 0
        assert cell_controls == []

    def test_configured_thresholds(self, sample_snapshot, now):
        index, statuses = _scoped(sample_snapshot)
        _, distribution, _ = build_heatmap(index, statuses, now, {"high_score": 7, "medium_score": 6})
        assert distribution.high == 0
        assert distribution.medium == 1


class TestRiskCoverage:
    def test_sample(self, sample_snapshot):
        index, statuses = _scoped(sample_snapshot)
        rows = build_risk_coverage(index, statuses)
        assert len(rows) == 1
        assert rows[0].id == "r1"
        assert rows[0].coverage_percent == 50
        assert rows[0].control_count == 2
        assert rows[0].missing_count == 1
        assert rows[0].control_codes == ["A.5.1", "A.5.9"]


class TestRiskControls:
    def test_failing_first(self, sample_snapshot):
        index, statuses = _scoped(sample_snapshot)
        rows = build_risk_controls(index, statuses)
        assert [row.control_id for row in rows] == ["A.8.8", "A.8.15"]
        assert rows[0].summary == "Evidence gap detected."
        assert rows[1].summary == "Log retention below 90 days."
        assert rows[1].status == "PARTIAL"

    def test_evidence_only_status_excluded(self, sample_snapshot):
        index, resolved = _scoped(sample_snapshot)
        statuses = dict(resolved)
        statuses["c3"] = resolved["c3"].model_copy(
            update={"status": ComplianceStatus.NOT_COMPLIANT, "source": StatusSource.EVIDENCE}
        )
        rows = build_risk_controls(index, statuses)
        assert [row.control_id for row in rows] == ["A.8.8", "A.8.15"]
