"""Randomized demo records for populating an empty analytics dashboard."""

from __future__ import annotations

import os
import random
from datetime import datetime, timedelta, timezone

from revlens_store.models import (
    DEFAULT_MODEL_NAME,
    ISSUE_TYPES,
    SEVERITIES,
    Issue,
    ReviewMetadata,
    TokenUsage,
    format_timestamp,
    new_record_id,
)

DEMO_FILES = (
    "api/routes.ts",
    "components/Button.tsx",
    "utils/helpers.ts",
    "services/auth.ts",
    "pages/Dashboard.tsx",
    "hooks/useData.ts",
    "lib/validation.ts",
    "types/index.ts",
)

_ALPHANUM = "0123456789abcdefghijklmnopqrstuvwxyz"


def _token(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(_ALPHANUM) for _ in range(length))


def generate_demo_records(
    count: int | None = None,
    days: int = 30,
    rng: random.Random | None = None,
    now: datetime | None = None,
    model_name: str = DEFAULT_MODEL_NAME,
) -> list[ReviewMetadata]:
    """Return ``count`` plausible review records spread over the last ``days`` days.

    ``count`` defaults to a random 30–45.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    if count is None:
        count = rng.randint(30, 45)

    records = []
    for _ in range(count):
        input_tokens = rng.randint(800, 3299)
        output_tokens = rng.randint(300, 1499)
        file_name = rng.choice(DEMO_FILES)
        issues = [
            Issue(
                message=f"Demo issue {_token(rng, 10)}",
                type=rng.choice(ISSUE_TYPES),
                severity=rng.choice(SEVERITIES),
                file=file_name,
                line=rng.randint(1, 400),
            )
            for _ in range(rng.randint(2, 7))
        ]
        records.append(
            ReviewMetadata(
                id=new_record_id("demo"),
                timestamp=format_timestamp(now - timedelta(days=rng.random() * days)),
                repository=os.getcwd(),
                branch="main",
                commit_hash=_token(rng, 8),
                files_changed=rng.randint(1, 5),
                lines_changed=rng.randint(30, 279),
                tokens_used=TokenUsage(input=input_tokens, output=output_tokens, total=input_tokens + output_tokens),
                review_duration_ms=rng.randint(2500, 14499),
                issues=issues,
                model_name=model_name,
            )
        )
    return records
