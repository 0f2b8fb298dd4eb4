"""add command — record a web-submitted review in both stores."""

from __future__ import annotations

import math

import click
from rich.console import Console

from revlens_cli.commands.stats import require_analytics
from revlens_core.pricing import Pricing, estimate_cost
from revlens_store.models import IssueCounts, TokenCounts

console = Console()


def _finite_cost(ctx, param, value):
    if value is not None and not math.isfinite(value):
        raise click.BadParameter("must be a finite number.")
    return value


@click.command("add")
@click.option("--file", "file_name", required=True, help="Name of the reviewed file.")
@click.option("--critical", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--warnings", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--suggestions", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--input-tokens", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--output-tokens", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--duration", type=click.IntRange(min=0), default=0, show_default=True, help="Review duration in ms.")
@click.option(
    "--cost",
    type=click.FloatRange(min=0),
    default=None,
    callback=_finite_cost,
    help="Cost in USD. Estimated from token counts when omitted.",
)
@click.pass_context
def add_cmd(
    ctx,
    file_name: str,
    critical: int,
    warnings: int,
    suggestions: int,
    input_tokens: int,
    output_tokens: int,
    duration: int,
    cost: float | None,
):
    """Record a review submitted through the web app.

    Writes a history item and its canonical review record, exactly as the
    web submission path does.
    """
    obj = require_analytics(ctx)
    if cost is None:
        cost = estimate_cost(input_tokens, output_tokens, Pricing.from_config(obj["config"]))

    item = obj["service"].add_review(
        file_name=file_name,
        issues=IssueCounts(critical=critical, warnings=warnings, suggestions=suggestions),
        tokens=TokenCounts(input=input_tokens, output=output_tokens),
        duration=duration,
        cost=cost,
    )
    if item is None:
        raise click.ClickException("Could not record the review; see the log for details.")
    console.print(f"[green]Recorded {item.id}[/green] (${item.cost:.6f})")
