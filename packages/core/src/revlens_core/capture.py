"""Turn a finished review run into a ReviewMetadata record.

The review runner owns a ReviewSession for each run. Cancelling the session
is the only way to abort a run; the analytics side never sees the session
itself, only the ReviewOutcome it produces when the run ends.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass, field

from revlens_core.pricing import estimate_output_tokens
from revlens_store.base import BaseStore
from revlens_store.models import (
    DEFAULT_MODEL_NAME,
    UNKNOWN,
    Issue,
    ReviewMetadata,
    TokenUsage,
    new_record_id,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


@dataclass
class ReviewOutcome:
    """What a review run reports back once it has stopped.

    ``input_tokens``/``output_tokens`` are None when the model did not
    report usage.
    """

    duration_ms: int
    input_tokens: int | None = None
    output_tokens: int | None = None
    issues: list[Issue] = field(default_factory=list)
    review_text: str = ""
    aborted: bool = False


class ReviewSession:
    """One in-flight review run, with its own cancellation token."""

    def __init__(self):
        self._cancelled = threading.Event()
        self._started = time.monotonic()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def elapsed_ms(self) -> int:
        return round((time.monotonic() - self._started) * 1000)

    def finish(
        self,
        input_tokens: int | None = None,
        output_tokens: int | None = None,
        issues: list[Issue] | None = None,
        review_text: str = "",
    ) -> ReviewOutcome:
        return ReviewOutcome(
            duration_ms=self.elapsed_ms(),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            issues=list(issues or []),
            review_text=review_text,
            aborted=self.cancelled,
        )


@dataclass
class GitInfo:
    repository: str = UNKNOWN
    branch: str = UNKNOWN
    commit_hash: str = UNKNOWN
    files_changed: int = 0
    lines_changed: int = 0


def _git(args: list[str], cwd: str) -> str | None:
    try:
        result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def collect_git_info(cwd: str = ".") -> GitInfo:
    """Read provenance for a review from the working tree. Never raises."""
    info = GitInfo(repository=os.path.abspath(cwd))
    info.branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd) or UNKNOWN
    info.commit_hash = _git(["rev-parse", "HEAD"], cwd) or UNKNOWN

    numstat = _git(["diff", "--numstat"], cwd)
    if numstat:
        for line in numstat.splitlines():
            parts = line.split("\t")
            if len(parts) < 3:
                continue
            info.files_changed += 1
            # Binary files report "-" for both counts.
            info.lines_changed += sum(int(p) for p in parts[:2] if p.isdigit())
    return info


def build_review_record(
    outcome: ReviewOutcome,
    git_info: GitInfo | None = None,
    model_name: str = DEFAULT_MODEL_NAME,
) -> ReviewMetadata:
    """Map a finished run to a record.

    When the model reported no output tokens, the total falls back to
    input + a length-based estimate of the review text; ``output`` stays 0.
    """
    git_info = git_info or GitInfo()
    input_tokens = outcome.input_tokens or 0
    output_tokens = outcome.output_tokens or 0
    total = input_tokens + (output_tokens or estimate_output_tokens(outcome.review_text))
    return ReviewMetadata(
        id=new_record_id("rev"),
        timestamp=utc_now_iso(),
        repository=git_info.repository,
        branch=git_info.branch,
        commit_hash=git_info.commit_hash,
        files_changed=git_info.files_changed,
        lines_changed=git_info.lines_changed,
        tokens_used=TokenUsage(input=input_tokens, output=output_tokens, total=total),
        review_duration_ms=max(0, outcome.duration_ms),
        issues=list(outcome.issues),
        model_name=model_name,
    )


def capture_review(
    store: BaseStore[ReviewMetadata],
    outcome: ReviewOutcome,
    git_info: GitInfo | None = None,
    model_name: str = DEFAULT_MODEL_NAME,
) -> ReviewMetadata | None:
    """Build and append the record for a finished run.

    Aborted runs are not recorded. Never raises; a failed capture is logged
    and the caller carries on.
    """
    if outcome.aborted:
        logger.info("Review run was aborted; nothing recorded.")
        return None
    try:
        record = build_review_record(outcome, git_info, model_name)
        store.append(record)
        return record
    except Exception as e:
        logger.warning("Analytics capture failed (%s): %s", type(e).__name__, e)
        return None
