"""JSON export of a dashboard response."""

from __future__ import annotations

from pathlib import Path

from ..models.dashboard import DashboardResponse


def dashboard_to_json(response: DashboardResponse) -> str:
    return response.model_dump_json(by_alias=True, indent=2)


def export_dashboard_json(response: DashboardResponse, output_path: Path) -> Path:
    """Write the dashboard to a JSON file (UTF-8, no BOM)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dashboard_to_json(response) + "\n", encoding="utf-8")
    return output_path
