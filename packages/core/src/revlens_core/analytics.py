"""Analytics service — the query and web-submission surface over both stores.

This is the seam an HTTP layer or the CLI calls. Every public method catches
failures at its boundary, logs them, and returns a safe default (None, an
empty list, zeroed metrics): analytics are instrumentation and must never
interrupt the review or commit workflow that produced them.
"""

from __future__ import annotations

import logging
from datetime import datetime

from revlens_core.backfill import merge_records, synthesize_review
from revlens_core.metrics import DEFAULT_MANUAL_REVIEW_MINUTES, Metrics, compute_metrics
from revlens_store.base import BaseStore
from revlens_store.history import sort_newest_first
from revlens_store.models import (
    DEFAULT_MODEL_NAME,
    IssueCounts,
    ReviewMetadata,
    TokenCounts,
    WebHistoryItem,
    history_item_from_dict,
    history_item_to_dict,
    new_record_id,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Reads, merges and aggregates the Record Store and the History Store."""

    def __init__(
        self,
        review_store: BaseStore[ReviewMetadata],
        history_store: BaseStore[WebHistoryItem],
        model_name: str = DEFAULT_MODEL_NAME,
        manual_review_minutes: float = DEFAULT_MANUAL_REVIEW_MINUTES,
    ):
        self.review_store = review_store
        self.history_store = history_store
        self.model_name = model_name
        self.manual_review_minutes = manual_review_minutes

    @classmethod
    def from_config(cls, config: dict, review_store, history_store) -> AnalyticsService:
        return cls(
            review_store,
            history_store,
            model_name=config.get("model_name", DEFAULT_MODEL_NAME),
            manual_review_minutes=config.get("manual_review_minutes", DEFAULT_MANUAL_REVIEW_MINUTES),
        )

    # ------------------------------------------------------------------ #
    # Record Store                                                        #
    # ------------------------------------------------------------------ #

    def append(self, record: ReviewMetadata) -> None:
        self.review_store.append(record)

    def read_all(self) -> list[ReviewMetadata]:
        return self.review_store.read_all()

    # ------------------------------------------------------------------ #
    # Web history                                                         #
    # ------------------------------------------------------------------ #

    def add_review(
        self,
        file_name: str,
        issues: IssueCounts | None = None,
        tokens: TokenCounts | None = None,
        duration: int = 0,
        cost: float = 0.0,
        id: str | None = None,
        timestamp: str | None = None,
    ) -> WebHistoryItem | None:
        """Record a web-submitted review in both stores.

        The history item is written first, then its synthesized ReviewMetadata.
        The two writes are independent: if the second fails the first stays,
        and merge_records() fills the gap at query time.
        """
        try:
            # Normalize through the parser so the returned item matches what is stored.
            item = history_item_from_dict(
                history_item_to_dict(
                    WebHistoryItem(
                        id=id or new_record_id("web"),
                        timestamp=timestamp or utc_now_iso(),
                        file_name=file_name,
                        issues=issues or IssueCounts(),
                        tokens=tokens or TokenCounts(),
                        duration=duration,
                        cost=cost,
                    )
                )
            )
            self.history_store.append(item)
            self.review_store.append(synthesize_review(item, self.model_name))
            logger.debug("Recorded web review %s for %s", item.id, file_name)
            return item
        except Exception as e:
            logger.warning("AnalyticsService.add_review() failed (%s): %s", type(e).__name__, e)
            return None

    def get_history(self, limit: int = 50) -> list[WebHistoryItem]:
        """Return up to ``limit`` history items, newest first."""
        try:
            return sort_newest_first(self.history_store.read_all())[: max(0, limit)]
        except Exception as e:
            logger.warning("AnalyticsService.get_history() failed (%s): %s", type(e).__name__, e)
            return []

    # ------------------------------------------------------------------ #
    # Queries                                                             #
    # ------------------------------------------------------------------ #

    def merged_records(self) -> list[ReviewMetadata]:
        """Stored reviews plus backfilled records for history-only entries."""
        try:
            return merge_records(self.review_store.read_all(), self.history_store.read_all(), self.model_name)
        except Exception as e:
            logger.warning("AnalyticsService.merged_records() failed (%s): %s", type(e).__name__, e)
            return []

    def get_metrics(self, days_back: int = 30, now: datetime | None = None) -> Metrics:
        try:
            history = self.history_store.read_all()
            records = merge_records(self.review_store.read_all(), history, self.model_name)
            return compute_metrics(
                records,
                history,
                days_back,
                now=now,
                manual_review_minutes=self.manual_review_minutes,
            )
        except Exception as e:
            logger.warning("AnalyticsService.get_metrics() failed (%s): %s", type(e).__name__, e)
            return Metrics.empty()
