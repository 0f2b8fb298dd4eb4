"""JSON-array file persistence shared by the review and history stores.

Data format: one pretty-printed JSON array per file, records in append order,
so the analytics directory stays human-inspectable.

Appends are read-modify-write, serialized by a single-writer discipline:
  - an in-process lock per backing file, shared by every store instance
    pointing at the same path, and
  - an exclusive flock on a sidecar ``<file>.lock`` for other processes
    (POSIX only; elsewhere only the in-process lock applies).

The new array is written to a temp file in the same directory and moved over
the old one with os.replace(), so readers (which take no lock) see either the
previous or the next complete document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from abc import abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from revlens_store.base import BaseStore, T

try:
    import fcntl
except ImportError:  # Windows
    fcntl = None

logger = logging.getLogger(__name__)

_PROCESS_LOCKS: dict[str, threading.Lock] = {}
_PROCESS_LOCKS_GUARD = threading.Lock()


def _process_lock(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _PROCESS_LOCKS_GUARD:
        return _PROCESS_LOCKS.setdefault(key, threading.Lock())


@contextmanager
def exclusive_writer(path: Path) -> Iterator[None]:
    """Hold the single-writer lock for ``path`` (threads and processes)."""
    with _process_lock(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path.with_name(path.name + ".lock"), "a") as lock_file:
            if fcntl is not None:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                if fcntl is not None:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


class JsonArrayStore(BaseStore[T]):
    """File-backed store holding a JSON array of records.

    Subclasses set FILENAME and provide the record <-> dict mapping via
    _to_dict() and _from_dict(). _from_dict() must raise ValueError for a
    record it cannot recover; any such record makes the whole file count as
    malformed.
    """

    FILENAME = "records.json"

    def __init__(self, directory: str | Path):
        self.path = Path(directory) / self.FILENAME

    # ------------------------------------------------------------------ #
    # Record mapping, implemented by each store                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    @abstractmethod
    def _to_dict(record: T) -> dict:
        """Serialize one record to its camelCase JSON object."""

    @staticmethod
    @abstractmethod
    def _from_dict(data) -> T:
        """Parse one JSON element, raising ValueError if it is unrecoverable."""

    # ------------------------------------------------------------------ #
    # BaseStore                                                           #
    # ------------------------------------------------------------------ #

    def read_all(self) -> list[T]:
        try:
            self._ensure_file()
            return self._parse(self.path.read_text(encoding="utf-8"))
        except Exception as e:
            # Losing metrics must never be worse than crashing the caller.
            logger.warning("%s.read_all() failed (%s): %s", type(self).__name__, type(e).__name__, e)
            return []

    def append(self, record: T) -> None:
        try:
            # Round-trip through the parser so the stored shape is always coerced.
            payload = self._to_dict(self._from_dict(self._to_dict(record)))
            with exclusive_writer(self.path):
                self._ensure_file()
                items = self._load_for_append()
                items.append(payload)
                self._write(items)
            logger.debug("%s: appended record %s", type(self).__name__, payload.get("id"))
        except Exception as e:
            logger.warning("%s.append() failed (%s): %s", type(self).__name__, type(e).__name__, e)

    # ------------------------------------------------------------------ #
    # File handling                                                       #
    # ------------------------------------------------------------------ #

    def _ensure_file(self) -> None:
        """Lazily create the backing file as an empty array."""
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.path, "x", encoding="utf-8") as f:
                f.write("[]")
        except FileExistsError:
            pass  # another writer created it first

    def _parse(self, text: str) -> list[T]:
        data = json.loads(text or "[]")
        if not isinstance(data, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        return [self._from_dict(item) for item in data]

    def _load_for_append(self) -> list[dict]:
        """Return the normalized existing records; quarantine a malformed file."""
        text = self.path.read_text(encoding="utf-8")
        try:
            return [self._to_dict(r) for r in self._parse(text)]
        except ValueError as e:  # json.JSONDecodeError is a ValueError
            quarantine = self.path.with_name(f"{self.path.name}.corrupt-{int(time.time() * 1000)}")
            os.replace(self.path, quarantine)
            logger.warning("%s: malformed %s moved to %s (%s)", type(self).__name__, self.path, quarantine.name, e)
            return []

    def _write(self, items: list[dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2, allow_nan=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
