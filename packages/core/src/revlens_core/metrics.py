"""Time-windowed aggregation of review records.

compute_metrics() takes the merged record set (see backfill.merge_records)
plus the raw web history items, because cost only exists on history items:
totalCost and avgCostPerReview are summed from history directly, everything
else from the merged records.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from revlens_core.utils.rounding import round_half_up
from revlens_store.models import ReviewMetadata, WebHistoryItem, parse_timestamp

_MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000
DEFAULT_MANUAL_REVIEW_MINUTES = 30


@dataclass
class MetricsSummary:
    total_reviews: int = 0
    total_issues: int = 0
    critical_issues: int = 0  # records with at least one critical issue
    time_saved_hours: float = 0.0
    avg_review_time_seconds: float = 0.0
    total_tokens: int = 0
    total_cost: float = 0.0
    avg_cost_per_review: float = 0.0


@dataclass
class TrendPoint:
    day: str  # YYYY-MM-DD, UTC
    reviews: int
    issues: int


@dataclass
class Metrics:
    summary: MetricsSummary = field(default_factory=MetricsSummary)
    by_type: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)
    trends: list[TrendPoint] = field(default_factory=list)

    @classmethod
    def empty(cls) -> Metrics:
        return cls()

    def to_dict(self) -> dict:
        """Render the JSON shape served to the analytics UI."""
        s = self.summary
        return {
            "summary": {
                "totalReviews": s.total_reviews,
                "totalIssues": s.total_issues,
                "criticalIssues": s.critical_issues,
                "timeSavedHours": s.time_saved_hours,
                "avgReviewTimeSeconds": s.avg_review_time_seconds,
                "totalTokens": s.total_tokens,
                "totalCost": s.total_cost,
                "avgCostPerReview": s.avg_cost_per_review,
            },
            "breakdown": {"byType": dict(self.by_type), "bySeverity": dict(self.by_severity)},
            "trends": [{"day": t.day, "reviews": t.reviews, "issues": t.issues} for t in self.trends],
        }


def window_start(days_back: int, now: datetime | None = None) -> datetime:
    """Return the inclusive start of the query window.

    ``days_back <= 0`` means "today": local midnight of the current day.
    Otherwise the window reaches back exactly ``days_back`` × 24h from now.
    """
    now = now or datetime.now(timezone.utc)
    if days_back <= 0:
        return now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    return now - timedelta(days=days_back)


def _in_window(timestamp: str, since: datetime) -> bool:
    try:
        return parse_timestamp(timestamp) >= since
    except ValueError:
        return False


def _utc_day(timestamp: str) -> str:
    return parse_timestamp(timestamp).astimezone(timezone.utc).date().isoformat()


def compute_metrics(
    records: list[ReviewMetadata],
    history: list[WebHistoryItem],
    days_back: int,
    now: datetime | None = None,
    manual_review_minutes: float = DEFAULT_MANUAL_REVIEW_MINUTES,
) -> Metrics:
    """Aggregate summary, breakdown and daily trends over the window.

    Records whose timestamp cannot be parsed are left out of the window.
    """
    since = window_start(days_back, now)
    included = [r for r in records if _in_window(r.timestamp, since)]

    total_reviews = len(included)
    total_issues = sum(len(r.issues) for r in included)
    critical_issues = sum(1 for r in included if any(i.severity == "critical" for i in r.issues))
    total_tokens = sum(r.tokens_used.total for r in included)
    total_duration_ms = sum(r.review_duration_ms for r in included)

    avg_review_time_seconds = round_half_up(total_duration_ms / total_reviews / 1000, 2) if total_reviews else 0
    # Can go negative when automated reviews take longer than the manual baseline.
    manual_ms = manual_review_minutes * _MS_PER_MINUTE
    time_saved_hours = round_half_up((total_reviews * manual_ms - total_duration_ms) / _MS_PER_HOUR, 2)

    by_type: Counter[str] = Counter()
    by_severity: Counter[str] = Counter()
    for record in included:
        for issue in record.issues:
            by_type[issue.type] += 1
            by_severity[issue.severity] += 1

    by_day: dict[str, list[int]] = {}
    for record in included:
        bucket = by_day.setdefault(_utc_day(record.timestamp), [0, 0])
        bucket[0] += 1
        bucket[1] += len(record.issues)
    trends = [TrendPoint(day=day, reviews=c[0], issues=c[1]) for day, c in sorted(by_day.items())]

    # Cost comes from history items only; merged records never carry it.
    costed = [h for h in history if _in_window(h.timestamp, since)]
    total_cost = round_half_up(sum(h.cost for h in costed), 6)
    avg_cost_per_review = round_half_up(total_cost / len(costed), 6) if costed else 0

    return Metrics(
        summary=MetricsSummary(
            total_reviews=total_reviews,
            total_issues=total_issues,
            critical_issues=critical_issues,
            time_saved_hours=time_saved_hours,
            avg_review_time_seconds=avg_review_time_seconds,
            total_tokens=total_tokens,
            total_cost=total_cost,
            avg_cost_per_review=avg_cost_per_review,
        ),
        by_type=dict(by_type),
        by_severity=dict(by_severity),
        trends=trends,
    )
