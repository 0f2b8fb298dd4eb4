"""No-op store — used when analytics are disabled in .revlens.yml.

Using a NoOpStore rather than None lets the service and the CLI always call
append() and read_all() without conditional checks.
"""

from __future__ import annotations

from typing import Any

from revlens_store.base import BaseStore


class NoOpStore(BaseStore[Any]):
    """Silently discards all records — selected with ``analytics: false``."""

    def append(self, record: Any) -> None:
        pass  # intentional no-op

    def read_all(self) -> list[Any]:
        return []
