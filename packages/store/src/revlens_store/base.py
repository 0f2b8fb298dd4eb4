"""Abstract store interface.

Both analytics collections (canonical review records and web history items)
implement this interface. The service and the CLI depend on BaseStore, not
on a concrete backend, so a disabled-analytics NoOpStore can stand in for
either without touching calling code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class BaseStore(ABC, Generic[T]):
    """Append-only persistence for one kind of analytics record.

    Analytics capture is instrumentation, not part of the review workflow:
    implementations must never raise from append() or read_all(). Failures
    are logged and the documented safe default is returned instead.
    """

    @abstractmethod
    def append(self, record: T) -> None:
        """Persist one record after every previously appended record."""

    @abstractmethod
    def read_all(self) -> list[T]:
        """Return every stored record in append order.

        Returns an empty list if nothing is stored or the storage is
        unreadable. Never raises.
        """
