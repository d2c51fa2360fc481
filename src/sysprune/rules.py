"""Predicates a resolved candidate must pass before a cleaner acts on it."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from .resource import Resource

logger = logging.getLogger(__name__)


class Since(Enum):
    """Which timestamp an age rule measures from."""

    MODIFIED = "modified"
    ACCESSED = "accessed"
    CREATED = "created"


@runtime_checkable
class Rule(Protocol):
    """A predicate over a candidate path and its metadata."""

    def test(self, path: Path, resource: Resource, now: datetime) -> bool:
        """Return True if the candidate passes."""
        ...


def _timestamp(path: Path, since: Since) -> datetime:
    st = path.stat(follow_symlinks=False)
    if since is Since.ACCESSED:
        value = st.st_atime
    elif since is Since.CREATED:
        # st_birthtime exists on macOS/BSD (and Windows from 3.12); st_ctime is creation on Windows.
        value = getattr(st, "st_birthtime", st.st_ctime)
    else:
        value = st.st_mtime
    return datetime.fromtimestamp(value, tz=UTC)


@dataclass(frozen=True)
class OlderThan:
    """Passes files whose chosen timestamp is more than ``days`` old."""

    days: int
    since: Since = Since.MODIFIED

    def test(self, path: Path, resource: Resource, now: datetime) -> bool:
        if self.since is Since.MODIFIED:
            stamp = resource.modified_at
        else:
            try:
                stamp = _timestamp(path, self.since)
            except OSError as exc:
                logger.error("Failed to get %s time for %s: %s", self.since.value, path, exc)
                return False

        passed = now - stamp > timedelta(days=self.days)
        logger.debug(
            "File %s is %s than %d days (%s)",
            path,
            "older" if passed else "newer",
            self.days,
            stamp.isoformat(),
        )
        return passed


@dataclass(frozen=True)
class ExtensionIn:
    """Passes files whose suffix (case-insensitive) is in ``extensions``."""

    extensions: frozenset[str]

    @classmethod
    def of(cls, extensions: Iterable[str]) -> ExtensionIn:
        normalised = (e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions)
        return cls(frozenset(normalised))

    def test(self, path: Path, resource: Resource, now: datetime) -> bool:
        return path.suffix.lower() in self.extensions


@dataclass(frozen=True)
class NotifyOnly:
    """Never blocks a candidate, but marks it as needing manual approval."""

    def test(self, path: Path, resource: Resource, now: datetime) -> bool:
        return True


def passes_all(rules: Iterable[Rule], path: Path, resource: Resource, now: datetime) -> bool:
    """True when every rule passes; an empty rule set passes everything."""
    return all(rule.test(path, resource, now) for rule in rules)


def is_notify_only(rules: Iterable[Rule]) -> bool:
    return any(isinstance(rule, NotifyOnly) for rule in rules)
