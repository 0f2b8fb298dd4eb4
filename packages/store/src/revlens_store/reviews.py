"""ReviewStore — the canonical Record Store.

Holds one ReviewMetadata per completed review run in
``<analytics_dir>/reviews.json``. Every producer ends up here: the CLI
capture path appends directly, the web path appends a synthesized record
after writing its own history item.
"""

from __future__ import annotations

from revlens_store.jsonfile import JsonArrayStore
from revlens_store.models import ReviewMetadata, review_from_dict, review_to_dict


class ReviewStore(JsonArrayStore[ReviewMetadata]):
    """Stores review records as an append-only JSON array.

    read_all() parses the full array in memory, which suits for the tens to
    low thousands of records an analytics directory accumulates.
    """

    FILENAME = "reviews.json"

    @staticmethod
    def _to_dict(record: ReviewMetadata) -> dict:
        return review_to_dict(record)

    @staticmethod
    def _from_dict(data) -> ReviewMetadata:
        return review_from_dict(data)
