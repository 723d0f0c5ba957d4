"""Prioritized remediation actions."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.dashboard import RecommendedAction
from .kpis import plural

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# Topical priority among actions of equal severity
TOPIC_ORDER = ("failed-controls", "missing-evidence", "unowned-risks", "overdue-controls")


@dataclass(frozen=True)
class Signals:
    failed_controls: int = 0
    missing_evidence: int = 0
    unowned_risks: int = 0
    overdue_controls: int = 0
    overdue_days: int = 14


def build_recommendations(signals: Signals) -> list[RecommendedAction]:
    """One action per nonzero signal, most severe first."""
    candidates = [
        RecommendedAction(
            id="failed-controls",
            title="Remediate failed controls",
            reason=f"{plural(signals.failed_controls, 'control')} assessed as not compliant",
            severity="high",
            count=signals.failed_controls,
            drilldown="/controls?status=NOT_COMPLIANT",
        ),
        RecommendedAction(
            id="missing-evidence",
            title="Collect missing evidence",
            reason=f"{plural(signals.missing_evidence, 'control')} without any supporting evidence",
            severity="high",
            count=signals.missing_evidence,
            drilldown="/evidence?freshness=missing",
        ),
        RecommendedAction(
            id="unowned-risks",
            title="Assign control owners",
            reason=f"{plural(signals.unowned_risks, 'at-risk control')} with no owner assigned",
            severity="medium",
            count=signals.unowned_risks,
            drilldown="/controls?owner=unassigned",
        ),
        RecommendedAction(
            id="overdue-controls",
            title="Review overdue evidence",
            reason=(
                f"{plural(signals.overdue_controls, 'control')} with evidence awaiting review "
                f"for more than {signals.overdue_days} days"
            ),
            severity="medium",
            count=signals.overdue_controls,
            drilldown="/evidence?review=overdue",
        ),
    ]

    actions = [action for action in candidates if action.count > 0]
    actions.sort(key=lambda a: (SEVERITY_ORDER.get(a.severity, 3), TOPIC_ORDER.index(a.id)))
    return actions
