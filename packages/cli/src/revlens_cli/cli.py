"""CLI entry point for revlens.

Commands:
  stats    — aggregated review metrics over a time window
  history  — recent web-submitted reviews
  add      — record a web-submitted review
  capture  — record a finished CLI review run with git provenance
  demo     — fill the analytics directory with randomized demo records
  cost     — estimate the cost of a token count
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from revlens_cli.commands.add import add_cmd
from revlens_cli.commands.capture import capture_cmd
from revlens_cli.commands.cost import cost_cmd
from revlens_cli.commands.demo import demo_cmd
from revlens_cli.commands.history import history_cmd
from revlens_cli.commands.stats import stats_cmd

console = Console(stderr=True)


def _build_stores(config: dict):
    """Instantiate the Record Store and History Store from .revlens.yml settings.

      analytics: true  → ReviewStore + HistoryStore under analytics_dir
      analytics: false → NoOpStore for both (nothing recorded)

    This factory lives in cli.py so neither revlens_core nor revlens_store
    know about the CLI config format.
    """
    from revlens_store.noop import NoOpStore

    if not config.get("analytics", True):
        return NoOpStore(), NoOpStore()

    from revlens_store.history import HistoryStore
    from revlens_store.reviews import ReviewStore

    directory = config.get("analytics_dir", ".code-review-analytics")
    return ReviewStore(directory), HistoryStore(directory)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("revlens"),
    prog_name="revlens",
)
@click.option(
    "--config",
    "config_path",
    default=".revlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Review analytics: token usage, cost and issue trends for AI code reviews."""
    from revlens_core.analytics import AnalyticsService
    from revlens_core.config import load_config

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)
    review_store, history_store = _build_stores(config)

    ctx.obj["config"] = config
    ctx.obj["service"] = AnalyticsService.from_config(config, review_store, history_store)


main.add_command(stats_cmd)
main.add_command(history_cmd)
main.add_command(add_cmd)
main.add_command(capture_cmd)
main.add_command(demo_cmd)
main.add_command(cost_cmd)
