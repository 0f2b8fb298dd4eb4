"""history command — display recent web-submitted reviews."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from revlens_cli.commands.stats import require_analytics
from revlens_store.models import history_item_to_dict

console = Console()


@click.command("history")
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Maximum number of records to show. Defaults to history_limit in .revlens.yml.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the records as JSON.")
@click.pass_context
def history_cmd(ctx, limit: int | None, as_json: bool):
    """Show the most recent web-submitted reviews, newest first."""
    obj = require_analytics(ctx)
    if limit is None:
        limit = obj["config"].get("history_limit", 50)

    items = obj["service"].get_history(limit)

    if as_json:
        click.echo(json.dumps([history_item_to_dict(i) for i in items], indent=2))
        return

    if not items:
        console.print("[yellow]No review records found.[/yellow]")
        return

    table = Table(title="Review History", show_header=True, header_style="bold cyan")
    table.add_column("File", max_width=30)
    table.add_column("Issues C/W/S", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Reviewed At")

    for item in items:
        table.add_row(
            item.file_name[:30],
            f"[red]{item.issues.critical}[/red]/[yellow]{item.issues.warnings}[/yellow]/[blue]{item.issues.suggestions}[/blue]",
            str(item.tokens.input + item.tokens.output),
            f"{item.duration / 1000:.1f}s",
            f"${item.cost:.6f}",
            item.timestamp[:19].replace("T", " "),
        )

    console.print(table)
