"""Review analytics data models.

Decoupled from revlens_core so the store layer can be used independently
and revlens_core has no knowledge of the on-disk format.

Persisted JSON uses camelCase keys; the dataclasses use snake_case. Each
entity has an explicit parser that fills documented defaults field by field
and raises ValueError only for input that cannot be recovered (not an object,
or missing an identifying field).
"""

from __future__ import annotations

import math
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

ISSUE_TYPES = ("security", "performance", "style", "bug", "maintainability", "documentation")
SEVERITIES = ("critical", "high", "medium", "low", "info")

DEFAULT_ISSUE_TYPE = "maintainability"
DEFAULT_SEVERITY = "info"
DEFAULT_MODEL_NAME = "models/gemini-2.5-flash"
UNKNOWN = "unknown"

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class Issue:
    """A single finding from a review."""

    message: str
    type: str = DEFAULT_ISSUE_TYPE
    severity: str = DEFAULT_SEVERITY
    file: str | None = None
    line: int | None = None


@dataclass
class TokenUsage:
    input: int = 0
    output: int = 0
    total: int = 0  # not re-derived from input + output


@dataclass
class ReviewMetadata:
    """A canonical review record — the unit of the Record Store.

    Created once by a producer (CLI capture, web history path, demo data)
    and never mutated after it has been appended.
    """

    id: str
    timestamp: str  # ISO-8601
    repository: str = UNKNOWN
    branch: str = UNKNOWN
    commit_hash: str = UNKNOWN
    files_changed: int = 0
    lines_changed: int = 0
    tokens_used: TokenUsage = field(default_factory=TokenUsage)
    review_duration_ms: int = 0
    issues: list[Issue] = field(default_factory=list)
    model_name: str = DEFAULT_MODEL_NAME


@dataclass
class IssueCounts:
    critical: int = 0
    warnings: int = 0
    suggestions: int = 0


@dataclass
class TokenCounts:
    input: int = 0
    output: int = 0


@dataclass
class WebHistoryItem:
    """A lighter record written by the interactive (web) submission path.

    Carries issue counts rather than individual issues, plus a cost that was
    already estimated when the review ran.
    """

    id: str
    timestamp: str
    file_name: str = ""
    issues: IssueCounts = field(default_factory=IssueCounts)
    tokens: TokenCounts = field(default_factory=TokenCounts)
    duration: int = 0  # ms
    cost: float = 0.0  # USD


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_record_id(prefix: str) -> str:
    """Return a collision-resistant id: ``<prefix>_<epoch-ms>_<6 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def format_timestamp(dt: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime (naive values are UTC)."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_count(value, default: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return max(0, int(value))


def _as_float(value, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return float(value)


def _as_text(value, default: str) -> str:
    return value if isinstance(value, str) else default


def _require_object(data, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _require_text(data: dict, key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{what} is missing required field {key!r}")
    return value


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def issue_from_dict(data) -> Issue:
    """Coerce a raw issue object; unknown type/severity fall back to the defaults."""
    d = _require_object(data, "issue")
    message = d.get("message")
    if not isinstance(message, str):
        raise ValueError("issue is missing required field 'message'")
    issue_type = d.get("type")
    severity = d.get("severity")
    line = d.get("line")
    return Issue(
        message=message,
        type=issue_type if issue_type in ISSUE_TYPES else DEFAULT_ISSUE_TYPE,
        severity=severity if severity in SEVERITIES else DEFAULT_SEVERITY,
        file=d.get("file") if isinstance(d.get("file"), str) else None,
        line=_as_count(line) if isinstance(line, (int, float)) and not isinstance(line, bool) else None,
    )


def review_from_dict(data) -> ReviewMetadata:
    d = _require_object(data, "review record")
    tokens = d.get("tokensUsed")
    tokens = tokens if isinstance(tokens, dict) else {}
    issues = d.get("issues")
    if issues is None:
        issues = []
    if not isinstance(issues, list):
        raise ValueError("review record field 'issues' must be a list")
    return ReviewMetadata(
        id=_require_text(d, "id", "review record"),
        timestamp=_require_text(d, "timestamp", "review record"),
        repository=_as_text(d.get("repository"), UNKNOWN),
        branch=_as_text(d.get("branch"), UNKNOWN),
        commit_hash=_as_text(d.get("commitHash"), UNKNOWN),
        files_changed=_as_count(d.get("filesChanged")),
        lines_changed=_as_count(d.get("linesChanged")),
        tokens_used=TokenUsage(
            input=_as_count(tokens.get("input")),
            output=_as_count(tokens.get("output")),
            total=_as_count(tokens.get("total")),
        ),
        review_duration_ms=_as_count(d.get("reviewDurationMs")),
        issues=[issue_from_dict(i) for i in issues],
        model_name=_as_text(d.get("modelName"), DEFAULT_MODEL_NAME),
    )


def history_item_from_dict(data) -> WebHistoryItem:
    d = _require_object(data, "history item")
    issues = d.get("issues")
    issues = issues if isinstance(issues, dict) else {}
    tokens = d.get("tokens")
    tokens = tokens if isinstance(tokens, dict) else {}
    return WebHistoryItem(
        id=_require_text(d, "id", "history item"),
        timestamp=_require_text(d, "timestamp", "history item"),
        file_name=_as_text(d.get("fileName"), ""),
        issues=IssueCounts(
            critical=_as_count(issues.get("critical")),
            warnings=_as_count(issues.get("warnings")),
            suggestions=_as_count(issues.get("suggestions")),
        ),
        tokens=TokenCounts(
            input=_as_count(tokens.get("input")),
            output=_as_count(tokens.get("output")),
        ),
        duration=_as_count(d.get("duration")),
        cost=_as_float(d.get("cost")),
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def issue_to_dict(issue: Issue) -> dict:
    d: dict = {"type": issue.type, "severity": issue.severity, "message": issue.message}
    if issue.file is not None:
        d["file"] = issue.file
    if issue.line is not None:
        d["line"] = issue.line
    return d


def review_to_dict(record: ReviewMetadata) -> dict:
    return {
        "id": record.id,
        "timestamp": record.timestamp,
        "repository": record.repository,
        "branch": record.branch,
        "commitHash": record.commit_hash,
        "filesChanged": record.files_changed,
        "linesChanged": record.lines_changed,
        "tokensUsed": {
            "input": record.tokens_used.input,
            "output": record.tokens_used.output,
            "total": record.tokens_used.total,
        },
        "reviewDurationMs": record.review_duration_ms,
        "issues": [issue_to_dict(i) for i in record.issues],
        "modelName": record.model_name,
    }


def history_item_to_dict(item: WebHistoryItem) -> dict:
    return {
        "id": item.id,
        "timestamp": item.timestamp,
        "fileName": item.file_name,
        "issues": {
            "critical": item.issues.critical,
            "warnings": item.issues.warnings,
            "suggestions": item.issues.suggestions,
        },
        "tokens": {"input": item.tokens.input, "output": item.tokens.output},
        "duration": item.duration,
        "cost": item.cost,
    }
