"""Snapshot data models: the read-only inputs of one dashboard request.

Upstream rows arrive as loose key/value mappings (camelCase or snake_case).
They are validated here, once, so the analytics never deal with missing keys.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class ComplianceStatus(str, Enum):
    COMPLIANT = "COMPLIANT"
    PARTIAL = "PARTIAL"
    NOT_COMPLIANT = "NOT_COMPLIANT"
    UNKNOWN = "UNKNOWN"


def normalize_status(value: Any) -> Optional[ComplianceStatus]:
    """Map a raw status string to a ComplianceStatus.

    Blank values return None; unrecognized values become UNKNOWN.
    """
    if value is None:
        return None
    if isinstance(value, ComplianceStatus):
        return value
    text = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    if not text:
        return None
    try:
        return ComplianceStatus(text)
    except ValueError:
        return ComplianceStatus.UNKNOWN


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value.strip() if isinstance(value, str) else value


class SnapshotRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
    )


class Framework(SnapshotRecord):
    name: str
    status: str = "enabled"
    updated_at: Optional[UtcDatetime] = None

    @property
    def active(self) -> bool:
        return self.status.strip().lower() in ("enabled", "active")


class EvidenceRequest(SnapshotRecord):
    """Evidence the catalog expects for a control (artifact + description)."""

    artifact: Optional[str] = None
    description: Optional[str] = None

    @property
    def text(self) -> str:
        return f"{self.artifact or ''} {self.description or ''}".strip().lower()


class RiskRef(SnapshotRecord):
    id: str
    title: Optional[str] = None


class Control(SnapshotRecord):
    """A single compliance control from the catalog."""

    id: str
    code: str = Field(default="", validation_alias=AliasChoices("code", "controlCode", "control_code"))
    title: str = ""
    owner_role: Optional[str] = None
    topic: Optional[str] = Field(default=None, validation_alias=AliasChoices("topic", "topicTitle", "topic_title"))
    framework_mappings: tuple[str, ...] = ()
    status: str = "enabled"
    evidence_requests: tuple[EvidenceRequest, ...] = ()
    risks: tuple[RiskRef, ...] = ()

    @field_validator("owner_role", "topic", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        if isinstance(value, dict):
            value = value.get("title")
        return _blank_to_none(value)

    @field_validator("framework_mappings", mode="before")
    @classmethod
    def _framework_names(cls, value: Any) -> Any:
        # Mappings come either as plain names or as {"framework": name} rows
        names: list[str] = []
        for item in value or []:
            name = item.get("framework", "") if isinstance(item, dict) else item
            name = str(name or "").strip()
            if name and name not in names:
                names.append(name)
        return tuple(names)

    @model_validator(mode="before")
    @classmethod
    def _default_code(cls, data: Any) -> Any:
        if isinstance(data, dict) and not any(data.get(key) for key in ("code", "controlCode", "control_code")):
            data = {**data, "code": data.get("id", "")}
        return data

    @field_validator("evidence_requests", "risks", mode="before")
    @classmethod
    def _unwrap_mappings(cls, value: Any) -> Any:
        # Catalog join rows wrap the target: {"evidenceRequest": {...}} / {"risk": {...}}
        items = []
        for item in value or []:
            if isinstance(item, dict):
                item = item.get("evidenceRequest") or item.get("risk") or item
            if item:
                items.append(item)
        return items

    @property
    def enabled(self) -> bool:
        return self.status.strip().lower() in ("enabled", "active")

    @property
    def display_title(self) -> str:
        return self.title or self.code


class EvaluationEvent(SnapshotRecord):
    """One explicit, timestamped judgment of a control's status."""

    control_id: str
    status: ComplianceStatus = ComplianceStatus.UNKNOWN
    timestamp: UtcDatetime = Field(validation_alias=AliasChoices("timestamp", "createdAt", "created_at"))
    summary: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> ComplianceStatus:
        return normalize_status(value) or ComplianceStatus.UNKNOWN


class EvidenceDocument(SnapshotRecord):
    """An uploaded artifact, optionally matched to one control."""

    id: Optional[str] = None
    control_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("controlId", "control_id", "matchControlId", "match_control_id"),
    )
    match_status: Optional[ComplianceStatus] = None
    created_at: UtcDatetime
    reviewed_at: Optional[UtcDatetime] = None
    submitted_at: Optional[UtcDatetime] = None
    doc_type: Optional[str] = None
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("displayName", "display_name", "originalName", "original_name"),
    )

    @field_validator("control_id", "doc_type", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("match_status", mode="before")
    @classmethod
    def _match_status(cls, value: Any) -> Optional[ComplianceStatus]:
        return normalize_status(value)

    @property
    def label(self) -> str:
        return f"{self.doc_type or ''} {self.display_name or ''}".strip()

    @property
    def evidence_at(self) -> datetime:
        """Most recent activity on the document (created, reviewed or submitted)."""
        stamps = [self.created_at]
        if self.reviewed_at:
            stamps.append(self.reviewed_at)
        if self.submitted_at:
            stamps.append(self.submitted_at)
        return max(stamps)


class Snapshot(SnapshotRecord):
    """Materialized upstream data for one request."""

    frameworks: tuple[Framework, ...] = ()
    controls: tuple[Control, ...] = ()
    evaluations: tuple[EvaluationEvent, ...] = ()
    documents: tuple[EvidenceDocument, ...] = ()
    rejected_rows: int = 0

    @classmethod
    def from_payload(cls, payload: dict) -> Snapshot:
        """Build a snapshot from raw rows, dropping rows that fail validation."""
        rejected = 0
        collections: dict[str, list] = {}
        for key, model in (
            ("frameworks", Framework),
            ("controls", Control),
            ("evaluations", EvaluationEvent),
            ("documents", EvidenceDocument),
        ):
            rows: list = []
            for raw in (payload or {}).get(key) or []:
                try:
                    rows.append(model.model_validate(raw))
                except ValidationError:
                    rejected += 1
            collections[key] = rows
        return cls(**collections, rejected_rows=rejected)

    def merge(self, other: Snapshot) -> Snapshot:
        return Snapshot(
            frameworks=self.frameworks + other.frameworks,
            controls=self.controls + other.controls,
            evaluations=self.evaluations + other.evaluations,
            documents=self.documents + other.documents,
            rejected_rows=self.rejected_rows + other.rejected_rows,
        )
