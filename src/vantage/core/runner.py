"""Dashboard runner: config, snapshot fetch, engine and output for one request."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional

from rich.console import Console

from .. import __version__
from ..formatters.json_export import dashboard_to_json, export_dashboard_json
from ..formatters.markdown import generate_dashboard_report
from ..sources.base import DashboardUnavailableError, get_snapshot_source
from ..utils.dates import parse_instant, utc_now
from .config import get_effective_config
from .engine import build_dashboard, parse_filters

console = Console(stderr=True)


def initialize_project(project_path: Path) -> None:
    """Initialize a .vantage directory with a starter config in a project."""
    vantage_dir = project_path / ".vantage"
    vantage_dir.mkdir(parents=True, exist_ok=True)

    config_path = vantage_dir / "config.yaml"
    if not config_path.exists():
        config_path.write_text(
            "# Compliance Vantage project configuration\n"
            "\n"
            f"vantage_version: \"{__version__}\"\n"
            "\n"
            "project:\n"
            f'  name: "{project_path.name}"\n'
            "\n"
            "scope:\n"
            "  range_days: 90\n"
            "\n"
            "source:\n"
            "  type: file\n"
            "  path: snapshot.json\n",
            encoding="utf-8",
        )

    console.print(f"  [green]Initialized[/green] .vantage/ in {project_path.name}")


async def run_dashboard(
    project_path: Path,
    snapshot_path: Optional[str] = None,
    endpoint: Optional[str] = None,
    framework: Optional[str] = None,
    business_unit: Optional[str] = None,
    risk_category: Optional[str] = None,
    range_days: Optional[str] = None,
    now: Optional[str] = None,
    output_format: Optional[str] = None,
    output_path: Optional[Path] = None,
    quiet: bool = False,
) -> int:
    """Compute and emit one dashboard. Returns exit code."""
    start_time = time.time()

    def status(message: str) -> None:
        if not quiet:
            console.print(message)

    project_path = Path(project_path).resolve()
    if not project_path.is_dir():
        console.print(f"  [red]ERROR[/red] Project path does not exist: {project_path}")
        return 11

    pinned_now = utc_now()
    if now:
        try:
            pinned_now = parse_instant(now)
        except ValueError:
            console.print(f"  [red]ERROR[/red] Invalid --now timestamp: {now}")
            return 11

    config = get_effective_config(project_path)
    output_format = output_format or config.get("output", {}).get("format", "json")
    if output_format not in ("json", "markdown"):
        console.print(f"  [red]ERROR[/red] Unknown output format: {output_format}")
        return 11

    try:
        source = get_snapshot_source(config, path_override=snapshot_path, endpoint_override=endpoint)
    except ValueError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return 11

    try:
        snapshot = await source.fetch()
    except DashboardUnavailableError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return 1

    status(
        f"  [green]OK[/green] Snapshot ({source.name}): {len(snapshot.frameworks)} frameworks, "
        f"{len(snapshot.controls)} controls, {len(snapshot.evaluations)} evaluations, "
        f"{len(snapshot.documents)} documents"
    )
    if snapshot.rejected_rows:
        status(f"  [yellow]WARN[/yellow] Skipped {snapshot.rejected_rows} malformed snapshot rows")

    filters = parse_filters(framework, business_unit, risk_category, range_days, config["scope"])
    response = build_dashboard(snapshot, filters, pinned_now, config)

    if not response.metrics.total_controls:
        wanted = filters.framework or "the active framework"
        status(f"  [yellow]WARN[/yellow] No enabled controls in scope for {wanted}")

    if output_format == "markdown":
        project_name = config.get("project", {}).get("name") or project_path.name
        rendered = generate_dashboard_report(response, project_name=project_name)
    else:
        rendered = dashboard_to_json(response)

    if output_path is not None:
        output_path = Path(output_path)
        if output_format == "json":
            export_dashboard_json(response, output_path)
        else:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(rendered + "\n", encoding="utf-8")
        status(f"  [green]OK[/green] Dashboard written to {output_path}")
    else:
        sys.stdout.write(rendered + "\n")

    status(
        f"  [green]OK[/green] {response.applied_filters.framework or 'No framework'}: "
        f"{response.metrics.coverage_percent}% coverage, exposure {response.risk_distribution.exposure} "
        f"in {round(time.time() - start_time, 2)}s"
    )
    return 0
