"""Per-request derived status models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .snapshot import ComplianceStatus


class StatusSource(str, Enum):
    EVALUATION = "evaluation"
    EVIDENCE = "evidence"
    NONE = "none"


class ControlStatusRecord(BaseModel):
    """Resolved current status of one control and the timestamp backing it."""

    model_config = ConfigDict(frozen=True)

    control_id: str
    status: ComplianceStatus = ComplianceStatus.UNKNOWN
    source: StatusSource = StatusSource.NONE
    last_seen: Optional[datetime] = None
