"""Audit-pack readiness, submission progress, uploads and recent activity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..models.dashboard import (
    ActivityItem,
    AuditReadiness,
    ControlCount,
    SubmissionReadiness,
    UploadSummary,
)
from ..models.snapshot import ComplianceStatus
from ..models.status import StatusSource
from ..utils.dates import percent, to_iso
from .index import ControlIndex
from .status import StatusMap

LOG_TERMS = ("log", "record", "ticket")


@dataclass(frozen=True)
class ReviewBacklog:
    awaiting_review: int = 0
    overdue_evidence: int = 0
    overdue_controls: int = 0


def accepted_control_ids(index: ControlIndex) -> set[str]:
    """Controls with at least one submitted document matched as COMPLIANT."""
    return {
        control_id
        for control_id, context in index.items()
        if any(
            doc.submitted_at and doc.match_status == ComplianceStatus.COMPLIANT
            for doc in context.documents
        )
    }


def build_audit_readiness(index: ControlIndex) -> AuditReadiness:
    accepted = accepted_control_ids(index)
    missing_policies = 0
    missing_logs = 0
    for control_id, context in index.items():
        if control_id in accepted:
            continue
        for request in context.control.evidence_requests:
            text = request.text
            if not text:
                continue
            if "policy" in text:
                missing_policies += 1
            if any(term in text for term in LOG_TERMS):
                missing_logs += 1

    return AuditReadiness(
        percent=percent(len(accepted), len(index)),
        accepted_controls=len(accepted),
        total_controls=len(index),
        missing_policies=missing_policies,
        missing_logs=missing_logs,
    )


def build_submission_readiness(index: ControlIndex) -> SubmissionReadiness:
    reviewed = 0
    submitted = 0
    for context in index.values():
        for doc in context.documents:
            if doc.reviewed_at:
                reviewed += 1
            if doc.submitted_at:
                submitted += 1
    return SubmissionReadiness(
        percent=percent(submitted, reviewed),
        submitted=submitted,
        reviewed=reviewed,
    )


def review_backlog(index: ControlIndex, now: datetime, overdue_days: int = 14) -> ReviewBacklog:
    """Unreviewed documents, and those left unreviewed past the overdue window."""
    threshold = now - timedelta(days=overdue_days)
    awaiting = 0
    overdue = 0
    overdue_controls = 0
    for context in index.values():
        control_overdue = False
        for doc in context.documents:
            if doc.reviewed_at:
                continue
            awaiting += 1
            if doc.created_at < threshold:
                overdue += 1
                control_overdue = True
        if control_overdue:
            overdue_controls += 1
    return ReviewBacklog(awaiting_review=awaiting, overdue_evidence=overdue, overdue_controls=overdue_controls)


def count_evaluated_controls(statuses: StatusMap) -> int:
    """Controls with an evaluation, or an evidence-derived status other than UNKNOWN."""
    return sum(
        1 for record in statuses.values()
        if record.source == StatusSource.EVALUATION or record.status != ComplianceStatus.UNKNOWN
    )


def last_review_at(index: ControlIndex) -> Optional[datetime]:
    stamps = [ctx.latest_evaluation.timestamp for ctx in index.values() if ctx.latest_evaluation]
    return max(stamps) if stamps else None


def build_upload_summary(index: ControlIndex, limit: int = 8) -> UploadSummary:
    per_control = [
        ControlCount(control_id=context.control.code, count=len(context.documents))
        for context in index.values()
        if context.documents
    ]
    per_control.sort(key=lambda row: (-row.count, row.control_id))
    return UploadSummary(
        total_uploaded_documents=sum(row.count for row in per_control),
        distinct_matched_controls=len(per_control),
        documents_per_control=per_control[:limit],
    )


def build_activity(index: ControlIndex, limit: int = 8) -> list[ActivityItem]:
    """Most recent uploads and evaluations, newest first."""
    uploads: list[tuple[datetime, ActivityItem]] = []
    reviews: list[tuple[datetime, ActivityItem]] = []
    for context in index.values():
        for doc in context.documents:
            uploads.append((doc.created_at, ActivityItem(
                label=f"{doc.display_name or doc.doc_type or 'Document'} uploaded",
                detail=f"Control: {context.control.code}",
                time=to_iso(doc.created_at),
            )))
        latest = context.latest_evaluation
        if latest is not None:
            reviews.append((latest.timestamp, ActivityItem(
                label=f"{context.control.code} reviewed",
                detail=f"Status: {latest.status.value}",
                time=to_iso(latest.timestamp),
            )))

    def newest(items: list[tuple[datetime, ActivityItem]]) -> list[tuple[datetime, ActivityItem]]:
        return sorted(items, key=lambda item: (item[0], item[1].label), reverse=True)[:6]

    merged = newest(uploads) + newest(reviews)
    merged.sort(key=lambda item: (item[0], item[1].label), reverse=True)
    return [item for _, item in merged[:limit]]
