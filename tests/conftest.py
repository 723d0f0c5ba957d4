"""Shared fixtures for Compliance Vantage tests."""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from vantage.models.snapshot import Snapshot

NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

SAMPLE_PAYLOAD: dict = {
    "frameworks": [
        {"name": "ISO27001", "status": "enabled", "updatedAt": "2026-06-01T00:00:00Z"},
        {"name": "SOC2", "status": "enabled", "updatedAt": "2026-05-01T00:00:00Z"},
        {"name": "LEGACY", "status": "disabled", "updatedAt": "2026-06-10T00:00:00Z"},
    ],
    "controls": [
        {
            "id": "c1",
            "code": "A.5.1",
            "title": "Policies for information security",
            "ownerRole": "CISO",
            "topic": {"title": "Governance"},
            "frameworkMappings": [{"framework": "ISO27001"}, {"framework": "SOC2"}],
            "evidenceRequests": [
                {"evidenceRequest": {"artifact": "Policy", "description": "Information security policy"}},
            ],
            "risks": [{"risk": {"id": "r1", "title": "Data breach"}}],
        },
        {
            "id": "c2",
            "code": "A.8.15",
            "title": "Logging",
            "ownerRole": "SecOps",
            "frameworkMappings": ["ISO27001"],
        },
        {
            "id": "c3",
            "code": "A.5.9",
            "title": "Inventory of assets",
            "frameworkMappings": ["ISO27001"],
            "risks": [{"risk": {"id": "r1", "title": "Data breach"}}],
        },
        {
            "id": "c4",
            "code": "A.8.8",
            "title": "Management of technical vulnerabilities",
            "ownerRole": "IT",
            "frameworkMappings": ["ISO27001"],
        },
        {
            "id": "c5",
            "code": "A.5.2",
            "title": "Information security roles",
            "status": "disabled",
            "frameworkMappings": ["ISO27001"],
        },
        {
            "id": "c6",
            "code": "CC6.1",
            "title": "Logical access",
            "ownerRole": "IT",
            "frameworkMappings": ["SOC2"],
        },
    ],
    "evaluations": [
        {"controlId": "c1", "status": "NOT_COMPLIANT", "timestamp": "2026-03-01T00:00:00Z"},
        {"controlId": "c1", "status": "COMPLIANT", "timestamp": "2026-03-11T00:00:00Z"},
        {
            "controlId": "A.8.15",
            "status": "PARTIAL",
            "timestamp": "2026-06-10T00:00:00Z",
            "summary": "Log retention below 90 days.",
        },
        {"controlId": "c4", "status": "NOT_COMPLIANT", "timestamp": "2026-01-10T00:00:00Z"},
        {"controlId": "c6", "status": "COMPLIANT", "timestamp": "2026-04-01T00:00:00Z"},
        {"controlId": "c2", "status": "COMPLIANT"},
    ],
    "documents": [
        {
            "id": "d1",
            "controlId": "c1",
            "matchStatus": "COMPLIANT",
            "docType": "Policy",
            "displayName": "infosec-policy.pdf",
            "createdAt": "2026-03-05T00:00:00Z",
            "reviewedAt": "2026-03-06T00:00:00Z",
            "submittedAt": "2026-03-07T00:00:00Z",
        },
        {
            "id": "d2",
            "matchControlId": "c2",
            "matchStatus": "PARTIAL",
            "docType": "Log export",
            "displayName": "siem-logs.csv",
            "createdAt": "2026-06-09T00:00:00Z",
        },
        {
            "id": "d3",
            "controlId": "c4",
            "matchStatus": "NOT_COMPLIANT",
            "docType": "Ticket",
            "displayName": "vuln-tickets.xlsx",
            "createdAt": "2026-01-05T00:00:00Z",
        },
        {
            "id": "d4",
            "controlId": "unknown-control",
            "matchStatus": "COMPLIANT",
            "displayName": "orphan.pdf",
            "createdAt": "2026-05-01T00:00:00Z",
        },
    ],
}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sample_payload() -> dict:
    """A fresh copy of the sample snapshot rows (camelCase, as exported)."""
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_snapshot(sample_payload: dict) -> Snapshot:
    return Snapshot.from_payload(sample_payload)


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    project = tmp_path / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def initialized_project(tmp_project: Path, sample_payload: dict) -> Path:
    """Create a project with .vantage config and a snapshot export."""
    vantage_dir = tmp_project / ".vantage"
    vantage_dir.mkdir()
    (vantage_dir / "config.yaml").write_text(
        'project:\n  name: "test-project"\n\nsource:\n  type: file\n  path: snapshot.json\n',
        encoding="utf-8",
    )
    (tmp_project / "snapshot.json").write_text(json.dumps(sample_payload), encoding="utf-8")
    return tmp_project
