"""Process-wide collector for non-fatal errors."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SinkEntry:
    """One recorded error and the unit (cleaner or source) it came from."""

    origin: str
    error: Exception

    def __str__(self) -> str:
        return f"[{self.origin}] {self.error}"


class ErrorSink:
    """Append-only, lock-guarded error log drained at the end of a run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[SinkEntry] = []

    def record(self, origin: str, error: Exception) -> None:
        """Append an error; safe to call from any thread."""
        with self._lock:
            self._entries.append(SinkEntry(origin=origin, error=error))
        logger.debug("Recorded error from %s: %s", origin, error)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> list[SinkEntry]:
        """Copy of the entries recorded so far."""
        with self._lock:
            return list(self._entries)

    def drain(self) -> list[SinkEntry]:
        """Return all entries and empty the sink."""
        with self._lock:
            entries, self._entries = self._entries, []
        return entries
