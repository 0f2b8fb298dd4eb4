"""cost command — estimate what a review costs."""

from __future__ import annotations

import click

from revlens_core.pricing import Pricing, estimate_cost


@click.command("cost")
@click.argument("input_tokens", type=click.IntRange(min=0))
@click.argument("output_tokens", type=click.IntRange(min=0))
@click.pass_context
def cost_cmd(ctx, input_tokens: int, output_tokens: int):
    """Print the estimated USD cost for INPUT_TOKENS and OUTPUT_TOKENS."""
    config = (ctx.obj or {}).get("config") or {}
    click.echo(f"${estimate_cost(input_tokens, output_tokens, Pricing.from_config(config)):.6f}")
