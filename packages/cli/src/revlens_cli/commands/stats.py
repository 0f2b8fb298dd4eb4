"""stats command — aggregated metrics across review history."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from revlens_store.models import ISSUE_TYPES, SEVERITIES

console = Console()

_SEV_STYLE = {"critical": "red", "high": "yellow", "medium": "cyan", "low": "blue", "info": "dim"}


def require_analytics(ctx) -> dict:
    """Return the context object, or fail if analytics are switched off."""
    obj = ctx.obj or {}
    config = obj.get("config") or {}
    if not config.get("analytics", True) or obj.get("service") is None:
        raise click.UsageError("Analytics are disabled. Set 'analytics: true' in .revlens.yml to record reviews.")
    return obj


@click.command("stats")
@click.option(
    "--days",
    "days_back",
    type=int,
    default=None,
    help="Window size in days; 0 means today only. Defaults to days_back in .revlens.yml.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw metrics as JSON.")
@click.pass_context
def stats_cmd(ctx, days_back: int | None, as_json: bool):
    """Show review metrics for the current analytics directory.

    Merges CLI-captured reviews with web-submitted history, then reports
    totals, time saved against a manual-review baseline, cost, issue
    breakdowns and a per-day trend.
    """
    obj = require_analytics(ctx)
    if days_back is None:
        days_back = obj["config"].get("days_back", 30)

    metrics = obj["service"].get_metrics(days_back)

    if as_json:
        click.echo(json.dumps(metrics.to_dict(), indent=2))
        return

    s = metrics.summary
    if s.total_reviews == 0:
        console.print("[yellow]No review records found in this window.[/yellow]")
        return

    window = "today" if days_back <= 0 else f"last {days_back} days"

    # --- Summary ---
    console.print(f"\n[bold]Review analytics — {window}[/bold]")
    console.print(f"  Total reviews:     {s.total_reviews}")
    console.print(f"  Total issues:      {s.total_issues}")
    console.print(f"  With critical:     {s.critical_issues}")
    console.print(f"  Avg review time:   {s.avg_review_time_seconds:.2f}s")
    console.print(f"  Time saved:        {s.time_saved_hours:.2f}h")
    console.print(f"  Total tokens:      {s.total_tokens:,}")
    console.print(f"  Total cost:        ${s.total_cost:.6f}")
    console.print(f"  Avg cost / review: ${s.avg_cost_per_review:.6f}")

    # --- Severity breakdown ---
    if metrics.by_severity:
        sev_table = Table(title="Severity Breakdown", show_header=True)
        sev_table.add_column("Severity", style="bold")
        sev_table.add_column("Count", justify="right")
        sev_table.add_column("% of total", justify="right")
        for sev in SEVERITIES:
            count = metrics.by_severity.get(sev, 0)
            pct = f"{count / s.total_issues * 100:.1f}%" if s.total_issues else "0%"
            style = _SEV_STYLE.get(sev, "white")
            sev_table.add_row(f"[{style}]{sev}[/{style}]", str(count), pct)
        console.print(sev_table)

    # --- Type breakdown ---
    if metrics.by_type:
        type_table = Table(title="Issue Types", show_header=True)
        type_table.add_column("Type")
        type_table.add_column("Count", justify="right")
        for issue_type in ISSUE_TYPES:
            type_table.add_row(issue_type, str(metrics.by_type.get(issue_type, 0)))
        console.print(type_table)

    # --- Daily trend ---
    trend_table = Table(title="Daily Trend (UTC)", show_header=True)
    trend_table.add_column("Day")
    trend_table.add_column("Reviews", justify="right")
    trend_table.add_column("Issues", justify="right")
    for point in metrics.trends:
        trend_table.add_row(point.day, str(point.reviews), str(point.issues))
    console.print(trend_table)
