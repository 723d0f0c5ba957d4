"""Current-status resolution per control.

An explicit evaluation always wins; evidence-derived status is the fallback.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from ..models.snapshot import ComplianceStatus, EvidenceDocument
from ..models.status import ControlStatusRecord, StatusSource
from .index import ControlContext, ControlIndex

# Evidence-derived precedence; UNKNOWN is the fallback when none match
DOCUMENT_STATUS_PRIORITY = (
    ComplianceStatus.COMPLIANT,
    ComplianceStatus.PARTIAL,
    ComplianceStatus.NOT_COMPLIANT,
)

StatusMap = Mapping[str, ControlStatusRecord]


def resolve_document_status(documents: Iterable[EvidenceDocument]) -> ComplianceStatus:
    """Derive a status from evidence match results by fixed priority."""
    statuses = {doc.match_status for doc in documents if doc.match_status}
    for status in DOCUMENT_STATUS_PRIORITY:
        if status in statuses:
            return status
    return ComplianceStatus.UNKNOWN


def resolve_control_status(context: ControlContext) -> ControlStatusRecord:
    control_id = context.control.id
    latest = context.latest_evaluation
    if latest is not None:
        return ControlStatusRecord(
            control_id=control_id,
            status=latest.status,
            source=StatusSource.EVALUATION,
            last_seen=latest.timestamp,
        )

    matched = [doc for doc in context.documents if doc.match_status]
    if not matched:
        return ControlStatusRecord(control_id=control_id)

    return ControlStatusRecord(
        control_id=control_id,
        status=resolve_document_status(matched),
        source=StatusSource.EVIDENCE,
        last_seen=max(doc.created_at for doc in matched),
    )


def resolve_statuses(index: ControlIndex) -> StatusMap:
    """Resolve exactly one status record per indexed control."""
    return MappingProxyType({
        control_id: resolve_control_status(context)
        for control_id, context in index.items()
    })
