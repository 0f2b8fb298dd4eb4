"""capture command — record a finished CLI review run."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console

from revlens_cli.commands.stats import require_analytics
from revlens_core.capture import ReviewOutcome, capture_review, collect_git_info
from revlens_store.models import issue_from_dict

console = Console()


def _load_issues(path: str | None) -> list:
    if path is None:
        return []
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError("expected a JSON array of issue objects")
        return [issue_from_dict(item) for item in data]
    except (OSError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--issues")


def _load_review_text(path: str | None) -> str:
    if path is None:
        return ""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise click.BadParameter(str(e), param_hint="--review-file")


@click.command("capture")
@click.option("--duration", type=click.IntRange(min=0), required=True, help="Review duration in ms.")
@click.option("--input-tokens", type=click.IntRange(min=0), default=None, help="Reported input tokens.")
@click.option(
    "--output-tokens",
    type=click.IntRange(min=0),
    default=None,
    help="Reported output tokens. When omitted the total is estimated from --review-file.",
)
@click.option("--issues", "issues_path", default=None, help="JSON file holding an array of issue objects.")
@click.option(
    "--review-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Markdown review produced by the run.",
)
@click.option(
    "--repo-path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Working tree the review ran against.",
)
@click.pass_context
def capture_cmd(
    ctx,
    duration: int,
    input_tokens: int | None,
    output_tokens: int | None,
    issues_path: str | None,
    review_file: str | None,
    repo_path: str,
):
    """Record a completed review run with branch, commit and diff size."""
    obj = require_analytics(ctx)
    outcome = ReviewOutcome(
        duration_ms=duration,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        issues=_load_issues(issues_path),
        review_text=_load_review_text(review_file),
    )
    service = obj["service"]
    record = capture_review(
        service.review_store,
        outcome,
        git_info=collect_git_info(repo_path),
        model_name=service.model_name,
    )
    if record is None:
        raise click.ClickException("Could not record the review; see the log for details.")
    console.print(
        f"[green]Recorded {record.id}[/green] — {len(record.issues)} issue(s), "
        f"{record.tokens_used.total} tokens on {record.branch}"
    )
