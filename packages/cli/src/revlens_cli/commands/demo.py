"""demo command — seed the Record Store with randomized reviews."""

from __future__ import annotations

import random

import click
from rich.console import Console

from revlens_cli.commands.stats import require_analytics
from revlens_core.demo import generate_demo_records

console = Console()


@click.command("demo")
@click.option("--count", type=click.IntRange(min=0), default=None, help="Number of records. Random 30-45 when omitted.")
@click.option("--days", type=click.IntRange(min=1), default=30, show_default=True, help="Spread records over this many days.")
@click.option("--seed", type=int, default=None, help="Seed for reproducible demo data.")
@click.pass_context
def demo_cmd(ctx, count: int | None, days: int, seed: int | None):
    """Append demo review records so the dashboard has something to show."""
    obj = require_analytics(ctx)
    service = obj["service"]
    records = generate_demo_records(count=count, days=days, rng=random.Random(seed), model_name=service.model_name)
    for record in records:
        service.append(record)
    console.print(f"[green]Generated {len(records)} demo reviews across {days} days.[/green]")
