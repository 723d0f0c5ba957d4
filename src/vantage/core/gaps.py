"""Remediation gap classification and risk driver ranking.

Each non-compliant control gets exactly one reason: the first rule in an
ordered rule list whose predicate matches.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..models.dashboard import DriverRecord, GapRecord
from ..models.snapshot import ComplianceStatus
from ..models.status import ControlStatusRecord
from ..utils.dates import age_days
from .index import ControlContext, ControlIndex
from .status import StatusMap

POLICY_KEYWORDS = ("policy",)


@dataclass(frozen=True)
class GapSubject:
    """What the gap rules know about one non-compliant control."""

    context: ControlContext
    record: ControlStatusRecord
    now: datetime
    policy_keywords: tuple[str, ...] = POLICY_KEYWORDS
    outdated_policy_days: int = 180

    @property
    def has_evidence(self) -> bool:
        return self.context.has_evidence

    @property
    def has_owner(self) -> bool:
        return bool(self.context.control.owner_role)

    @property
    def is_policy_evidence(self) -> bool:
        for doc in self.context.documents:
            label = doc.label.lower()
            if any(term in label for term in self.policy_keywords):
                return True
        return any("policy" in request.text for request in self.context.control.evidence_requests)

    @property
    def evidence_age_days(self) -> Optional[int]:
        latest = self.context.latest_document
        return age_days(latest.evidence_at, self.now) if latest else None

    @property
    def is_outdated_policy(self) -> bool:
        age = self.evidence_age_days
        return self.is_policy_evidence and age is not None and age >= self.outdated_policy_days

    @property
    def is_untested(self) -> bool:
        return not self.context.evaluations or self.record.status == ComplianceStatus.UNKNOWN


@dataclass(frozen=True)
class Rule:
    reason_id: str
    label: str
    matches: Callable[[GapSubject], bool]


GAP_RULES: tuple[Rule, ...] = (
    Rule("missing-evidence", "Missing evidence", lambda s: not s.has_evidence),
    Rule("owner-not-assigned", "Owner not assigned", lambda s: not s.has_owner),
    Rule("outdated-policy", "Outdated policy", lambda s: s.is_outdated_policy),
    Rule("control-not-tested", "Control not tested", lambda s: s.is_untested),
    Rule("control-not-implemented", "Control not implemented", lambda s: True),
)

DRIVER_RULES: tuple[Rule, ...] = (
    Rule("missing-evidence", "Missing evidence", lambda s: not s.has_evidence),
    Rule("owner-not-assigned", "Unowned controls", lambda s: not s.has_owner),
    Rule("control-not-tested", "Untested controls", lambda s: s.is_untested),
)

DRIVER_FALLBACK = "missing-evidence"


def classify(subject: GapSubject, rules: Sequence[Rule], fallback: Optional[str] = None) -> Optional[str]:
    """Return the reason id of the first matching rule."""
    for rule in rules:
        if rule.matches(subject):
            return rule.reason_id
    return fallback


def non_compliant_subjects(
    index: ControlIndex,
    statuses: StatusMap,
    now: datetime,
    gaps_config: Optional[dict] = None,
) -> list[GapSubject]:
    cfg = gaps_config or {}
    keywords = tuple(term.lower() for term in cfg.get("policy_keywords", POLICY_KEYWORDS))
    outdated_days = cfg.get("outdated_policy_days", 180)
    return [
        GapSubject(
            context=context,
            record=statuses[control_id],
            now=now,
            policy_keywords=keywords,
            outdated_policy_days=outdated_days,
        )
        for control_id, context in index.items()
        if statuses[control_id].status != ComplianceStatus.COMPLIANT
    ]


def _tally(reasons: list[str], rules: Sequence[Rule]) -> list[tuple[Rule, int]]:
    counts = Counter(reasons)
    ranked = [(rule, counts[rule.reason_id]) for rule in rules if counts[rule.reason_id]]
    # Stable sort keeps rule order among equal counts
    ranked.sort(key=lambda item: -item[1])
    return ranked


def classify_gaps(subjects: list[GapSubject], limit: int = 5) -> list[GapRecord]:
    reasons = [classify(subject, GAP_RULES) for subject in subjects]
    return [
        GapRecord(reason_id=rule.reason_id, label=rule.label, count=count)
        for rule, count in _tally([r for r in reasons if r], GAP_RULES)[:limit]
    ]


def rank_drivers(subjects: list[GapSubject], limit: int = 3) -> list[DriverRecord]:
    reasons = [classify(subject, DRIVER_RULES, DRIVER_FALLBACK) for subject in subjects]
    return [
        DriverRecord(reason_id=rule.reason_id, label=rule.label, count=count)
        for rule, count in _tally([r for r in reasons if r], DRIVER_RULES)[:limit]
    ]
