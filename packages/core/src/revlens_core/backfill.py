"""Merge & backfill of the two analytics stores.

Every web history item should have a ReviewMetadata twin with the same id,
but the two writes in AnalyticsService.add_review() are independent and
either may fail. merge_records() builds the single logical view the
aggregator needs: stored reviews first, then a synthesized record for each
history item that has no twin.

The synthesized records are never written back. The merge is recomputed on
every query, so running it any number of times cannot duplicate data.
"""

from __future__ import annotations

from revlens_store.models import (
    DEFAULT_MODEL_NAME,
    Issue,
    IssueCounts,
    ReviewMetadata,
    TokenUsage,
    WebHistoryItem,
)

# Issue counts carry no type information, so every expanded issue gets this placeholder.
_PLACEHOLDER_TYPE = "maintainability"

# (count attribute, severity, message) in expansion order.
_COUNT_EXPANSION = (
    ("critical", "critical", "critical"),
    ("warnings", "medium", "warning"),
    ("suggestions", "low", "suggestion"),
)


def expand_issue_counts(counts: IssueCounts) -> list[Issue]:
    """Turn ``{critical, warnings, suggestions}`` counts into that many issues."""
    issues: list[Issue] = []
    for attr, severity, message in _COUNT_EXPANSION:
        for _ in range(getattr(counts, attr)):
            issues.append(Issue(message=message, type=_PLACEHOLDER_TYPE, severity=severity))
    return issues


def synthesize_review(item: WebHistoryItem, model_name: str = DEFAULT_MODEL_NAME) -> ReviewMetadata:
    """Build the canonical record for a web history item.

    Unlike records captured from a review run, ``total`` here is derived as
    input + output.
    """
    return ReviewMetadata(
        id=item.id,
        timestamp=item.timestamp,
        repository="web-app",
        branch="web",
        commit_hash="web",
        files_changed=1,
        lines_changed=0,
        tokens_used=TokenUsage(
            input=item.tokens.input,
            output=item.tokens.output,
            total=item.tokens.input + item.tokens.output,
        ),
        review_duration_ms=item.duration,
        issues=expand_issue_counts(item.issues),
        model_name=model_name,
    )


def merge_records(
    reviews: list[ReviewMetadata],
    history: list[WebHistoryItem],
    model_name: str = DEFAULT_MODEL_NAME,
) -> list[ReviewMetadata]:
    """Return stored reviews plus synthesized records for history-only ids.

    Neither input list is modified.
    """
    merged = list(reviews)
    seen = {r.id for r in reviews}
    for item in history:
        if item.id in seen:
            continue
        seen.add(item.id)
        merged.append(synthesize_review(item, model_name))
    return merged
