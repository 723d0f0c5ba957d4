"""Compliance Vantage (vantage) - compliance analytics dashboard CLI."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from .. import __version__


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(__version__, prog_name="vantage")
def vantage_cli(ctx: click.Context) -> None:
    """Compliance Vantage - dashboard analytics over a compliance snapshot."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@vantage_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".", help="Project path")
@click.option("--snapshot", type=str, help="Snapshot file (JSON or YAML)")
@click.option("--endpoint", type=str, help="Compliance store API base URL")
@click.option("--framework", type=str, help="Framework name (defaults to the most recently updated)")
@click.option("--business-unit", type=str)
@click.option("--risk-category", type=str)
@click.option("--range-days", type=str, help="Trend window in days (30-365)")
@click.option("--now", type=str, help="Pin the evaluation instant (ISO-8601)")
@click.option("--output-format", "-f", type=click.Choice(["json", "markdown"]))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.option("--quiet", "-q", is_flag=True, help="Suppress status lines")
@click.pass_context
def dashboard(
    ctx: click.Context,
    project: str,
    snapshot: str | None,
    endpoint: str | None,
    framework: str | None,
    business_unit: str | None,
    risk_category: str | None,
    range_days: str | None,
    now: str | None,
    output_format: str | None,
    output: str | None,
    quiet: bool,
) -> None:
    """Compute the compliance dashboard for a project."""
    if snapshot and endpoint:
        click.echo("Error: use either --snapshot or --endpoint, not both.", err=True)
        ctx.exit(11)
        return

    from ..core.runner import run_dashboard

    exit_code = asyncio.run(
        run_dashboard(
            project_path=Path(project),
            snapshot_path=snapshot,
            endpoint=endpoint,
            framework=framework,
            business_unit=business_unit,
            risk_category=risk_category,
            range_days=range_days,
            now=now,
            output_format=output_format,
            output_path=Path(output) if output else None,
            quiet=quiet,
        )
    )
    sys.exit(exit_code)


@vantage_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), required=True)
def init(project: str) -> None:
    """Initialize Compliance Vantage in a project."""
    from ..core.runner import initialize_project

    initialize_project(Path(project))


def main() -> None:
    vantage_cli()


if __name__ == "__main__":
    main()
