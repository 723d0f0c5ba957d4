"""Evidence quality and freshness scoring."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..models.dashboard import EvidenceFreshness, EvidenceHealth
from ..models.snapshot import Control
from ..utils.dates import age_days, percent
from .aggregation import PARTIAL_WEIGHT
from .index import ControlContext, ControlIndex

HIGH_KEYWORDS = ("log", "logs", "config", "configuration", "ticket", "record", "records")
MEDIUM_KEYWORDS = ("policy", "procedure", "process", "guideline", "standard", "plan")

LEVEL_RANK = {"low": 0, "medium": 1, "high": 2}

GOVERNANCE_MARKERS = ("governance", "risk management")


def is_governance_control(control: Control, markers: Sequence[str] = GOVERNANCE_MARKERS) -> bool:
    """Governance controls treat policy-type documents as strong evidence."""
    normalized = f"{control.code} {control.topic or ''}".lower()
    return normalized.startswith("gov") or any(marker in normalized for marker in markers)


def classify_evidence_type(
    label: str,
    governance: bool = False,
    high_keywords: Sequence[str] = HIGH_KEYWORDS,
    medium_keywords: Sequence[str] = MEDIUM_KEYWORDS,
) -> str:
    """Classify one document label as high, medium or low quality evidence."""
    normalized = (label or "").lower()
    if not normalized:
        return "low"
    if any(term in normalized for term in high_keywords):
        return "high"
    if any(term in normalized for term in medium_keywords):
        return "high" if governance else "medium"
    return "low"


def control_evidence_level(context: ControlContext, evidence_config: Optional[dict] = None) -> str:
    """Best level among a control's documents; low when it has none."""
    cfg = evidence_config or {}
    governance = is_governance_control(context.control, cfg.get("governance_markers", GOVERNANCE_MARKERS))
    level = "low"
    for doc in context.documents:
        found = classify_evidence_type(
            doc.label,
            governance,
            cfg.get("high_keywords", HIGH_KEYWORDS),
            cfg.get("medium_keywords", MEDIUM_KEYWORDS),
        )
        if LEVEL_RANK[found] > LEVEL_RANK[level]:
            level = found
        if level == "high":
            break
    return level


def score_evidence_health(
    index: ControlIndex,
    partial_weight: float = PARTIAL_WEIGHT,
    evidence_config: Optional[dict] = None,
) -> EvidenceHealth:
    health = {"high": 0, "medium": 0, "low": 0}
    for context in index.values():
        health[control_evidence_level(context, evidence_config)] += 1

    total = len(index)
    return EvidenceHealth(
        high=health["high"],
        medium=health["medium"],
        low=health["low"],
        score=percent(health["high"] + partial_weight * health["medium"], total),
        total=total,
    )


def freshness_class(days: int, evidence_config: Optional[dict] = None) -> str:
    cfg = evidence_config or {}
    if days > cfg.get("expired_days", 365):
        return "expired"
    if days >= cfg.get("expiring_days", 335):
        return "expiringSoon"
    if days >= cfg.get("outdated_days", 180):
        return "outdated"
    return "valid"


def control_freshness(context: ControlContext, now: datetime, evidence_config: Optional[dict] = None) -> str:
    """Freshness of the control's most recent document, or ``missing``."""
    latest = context.latest_document
    if latest is None:
        return "missing"
    return freshness_class(age_days(latest.evidence_at, now), evidence_config)


def score_evidence_freshness(
    index: ControlIndex,
    now: datetime,
    evidence_config: Optional[dict] = None,
) -> EvidenceFreshness:
    counts = {"valid": 0, "outdated": 0, "expiringSoon": 0, "expired": 0, "missing": 0}
    for context in index.values():
        counts[control_freshness(context, now, evidence_config)] += 1

    return EvidenceFreshness(
        valid=counts["valid"],
        outdated=counts["outdated"],
        expiring_soon=counts["expiringSoon"],
        expired=counts["expired"],
        missing=counts["missing"],
        total=len(index),
    )
