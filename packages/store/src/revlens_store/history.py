"""HistoryStore — the Secondary History Store for web-submitted reviews.

Kept separate from ReviewStore so the canonical record schema does not have
to be weakened to fit the lighter web shape (issue counts instead of
issues, and a pre-computed cost).
"""

from __future__ import annotations

from revlens_store.jsonfile import JsonArrayStore
from revlens_store.models import WebHistoryItem, history_item_from_dict, history_item_to_dict, parse_timestamp


class HistoryStore(JsonArrayStore[WebHistoryItem]):
    """Stores web history items in ``<analytics_dir>/history.json``."""

    FILENAME = "history.json"

    @staticmethod
    def _to_dict(record: WebHistoryItem) -> dict:
        return history_item_to_dict(record)

    @staticmethod
    def _from_dict(data) -> WebHistoryItem:
        return history_item_from_dict(data)


def sort_newest_first(items: list[WebHistoryItem]) -> list[WebHistoryItem]:
    """Sort history items by timestamp, newest first.

    Items whose timestamp cannot be parsed sort last, keeping their order.
    """

    def key(item: WebHistoryItem) -> float:
        try:
            return -parse_timestamp(item.timestamp).timestamp()
        except ValueError:
            return float("inf")

    return sorted(items, key=key)
