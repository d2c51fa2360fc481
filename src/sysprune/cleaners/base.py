"""Cleaner catalogue entries and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..errors import DeletionError, MissKind
from ..locations import LocationDescriptor, Platform, applies_to
from ..rules import Rule


@dataclass(frozen=True)
class Cleaner:
    """Named bundle of locations and rules implementing one OS-junk category."""

    name: str
    locations: tuple[LocationDescriptor, ...]
    rules: tuple[Rule, ...] = ()
    description: str = ""

    def locations_for(self, platform: Platform) -> list[LocationDescriptor]:
        """Descriptors applicable to ``platform``."""
        return [loc for loc in self.locations if applies_to(loc, platform)]

    def supported(self, platform: Platform) -> bool:
        return bool(self.locations_for(platform))


class Status(Enum):
    """Overall state of one cleaner invocation."""

    CLEANED = "cleaned"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(Enum):
    UNSUPPORTED = "the cleaner is not supported on this platform"
    NO_FILES = "there are no files that can be cleaned"


@dataclass(frozen=True)
class CleanedFile:
    """A file removed (or, in a dry run, that would be removed)."""

    path: Path
    size_bytes: int


@dataclass
class CleanupResult:
    """Outcome of one cleaner; owned exclusively by that cleaner's task."""

    cleaner_name: str
    dry_run: bool = False
    files_removed: list[CleanedFile] = field(default_factory=list)
    missed: list[DeletionError] = field(default_factory=list)
    notified: list[CleanedFile] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    skip_reason: SkipReason | None = None
    failure: Exception | None = None

    @property
    def bytes_freed(self) -> int:
        return sum(f.size_bytes for f in self.files_removed)

    @property
    def skipped(self) -> list[DeletionError]:
        """Candidates whose fate is unknown (cancelled or vanished)."""
        return [m for m in self.missed if m.kind in (MissKind.CANCELLED, MissKind.VANISHED)]

    @property
    def failed_deletions(self) -> list[DeletionError]:
        """Candidates that were attempted and could not be removed."""
        return [m for m in self.missed if m.kind in (MissKind.IN_USE, MissKind.PERMISSION, MissKind.OTHER)]

    @property
    def rule_rejected(self) -> int:
        return sum(1 for m in self.missed if m.kind is MissKind.RULE)

    @property
    def missed_bytes(self) -> int:
        return sum(m.size_bytes for m in self.missed if m.kind is not MissKind.RULE)

    @property
    def status(self) -> Status:
        if self.failure is not None:
            return Status.FAILED
        if self.skip_reason is not None:
            return Status.SKIPPED
        if self.errors or self.failed_deletions or self.skipped:
            return Status.PARTIAL
        if not self.files_removed and not self.notified:
            return Status.SKIPPED
        return Status.CLEANED


@dataclass
class AggregateReport:
    """Union of every cleaner's result for one executor run."""

    dry_run: bool = False
    results: list[CleanupResult] = field(default_factory=list)
    cancelled: bool = False

    def result_for(self, cleaner_name: str) -> CleanupResult | None:
        return next((r for r in self.results if r.cleaner_name == cleaner_name), None)

    @property
    def files_removed(self) -> list[CleanedFile]:
        return [f for r in self.results for f in r.files_removed]

    @property
    def bytes_freed(self) -> int:
        return sum(r.bytes_freed for r in self.results)

    @property
    def missed_bytes(self) -> int:
        return sum(r.missed_bytes for r in self.results)

    @property
    def errors(self) -> list[Exception]:
        found: list[Exception] = []
        for r in self.results:
            found.extend(r.errors)
            found.extend(r.failed_deletions)
            if r.failure is not None:
                found.append(r.failure)
        return found

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and all(r.status is Status.FAILED for r in self.results)
