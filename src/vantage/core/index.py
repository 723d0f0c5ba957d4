"""Per-request control index.

Events and documents are grouped by control once, sorted chronologically,
and exposed through a read-only mapping that every analytic step shares.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..models.snapshot import Control, EvaluationEvent, EvidenceDocument


@dataclass(frozen=True)
class ControlContext:
    """A control with its evaluation history and evidence, oldest first."""

    control: Control
    evaluations: tuple[EvaluationEvent, ...] = ()
    documents: tuple[EvidenceDocument, ...] = ()

    @property
    def latest_evaluation(self) -> Optional[EvaluationEvent]:
        return self.evaluations[-1] if self.evaluations else None

    @property
    def has_evidence(self) -> bool:
        return bool(self.documents)

    @property
    def latest_document(self) -> Optional[EvidenceDocument]:
        if not self.documents:
            return None
        return max(self.documents, key=lambda doc: doc.evidence_at)


ControlIndex = Mapping[str, ControlContext]


def resolve_reference(reference: Optional[str], lookup: Mapping[str, str]) -> Optional[str]:
    """Resolve an event's control reference (id or code) to a control id."""
    if not reference:
        return None
    return lookup.get(reference.strip())


def build_index(
    controls: Iterable[Control],
    evaluations: Iterable[EvaluationEvent],
    documents: Iterable[EvidenceDocument],
) -> ControlIndex:
    """Group events and documents under the controls they reference.

    Rows that reference no listed control are ignored.
    """
    ordered: list[Control] = []
    seen: set[str] = set()
    for control in controls:
        if control.id in seen:
            continue
        seen.add(control.id)
        ordered.append(control)

    lookup: dict[str, str] = {}
    # Codes first so an id always wins over a colliding code
    for control in ordered:
        lookup[control.code] = control.id
    for control in ordered:
        lookup[control.id] = control.id

    events_by_control: dict[str, list[EvaluationEvent]] = defaultdict(list)
    for event in evaluations:
        control_id = resolve_reference(event.control_id, lookup)
        if control_id:
            events_by_control[control_id].append(event)

    docs_by_control: dict[str, list[EvidenceDocument]] = defaultdict(list)
    for doc in documents:
        control_id = resolve_reference(doc.control_id, lookup)
        if control_id:
            docs_by_control[control_id].append(doc)

    index: dict[str, ControlContext] = {}
    for control in ordered:
        index[control.id] = ControlContext(
            control=control,
            evaluations=tuple(sorted(events_by_control.get(control.id, []), key=lambda e: e.timestamp)),
            documents=tuple(sorted(docs_by_control.get(control.id, []), key=lambda d: d.created_at)),
        )
    return MappingProxyType(index)
