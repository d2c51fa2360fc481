"""Concurrent execution of the selected cleaners."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from .cleaners.base import AggregateReport, CleanedFile, Cleaner, CleanupResult, SkipReason
from .errors import DeletionError, ElevationError, MissKind
from .errorsink import ErrorSink
from .locations import Resolver, expand
from .resource import Resource
from .rules import is_notify_only, passes_all
from .sources.local import remove_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass
class _Collected:
    candidates: list[tuple[Path, Resource]] = field(default_factory=list)
    rejected: list[DeletionError] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


class CleanerExecutor:
    """Runs cleaners in parallel, isolating each one's failures.

    Cleaners address disjoint target sets, so no state is shared between them
    apart from the error sink. ``cancel`` stops new deletions; candidates not
    yet attempted are reported as cancelled, never as removed.
    """

    def __init__(
        self,
        sink: ErrorSink,
        resolver: Resolver | None = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        privilege_check: Callable[[], ElevationError | None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.sink = sink
        self.resolver = resolver or Resolver()
        self.max_workers = max_workers
        self.privilege_check = privilege_check
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Stop issuing deletions as soon as possible."""
        if not self._cancel.is_set():
            logger.warning("Cancellation requested; finishing in-flight deletions")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def run(self, cleaners: Sequence[Cleaner], *, dry_run: bool = False) -> AggregateReport:
        """Run every cleaner and merge the results.

        Raises:
            ElevationError: If a privilege check is configured, this is not a
                dry run, and the process lacks the required rights. Raised
                before any filesystem access.

        """
        if not dry_run and self.privilege_check is not None:
            if (error := self.privilege_check()) is not None:
                raise error

        started = time.monotonic()
        semaphore = asyncio.Semaphore(self.max_workers)
        outcomes = await asyncio.gather(
            *(self._run_cleaner(cleaner, dry_run, semaphore) for cleaner in cleaners),
            return_exceptions=True,
        )

        report = AggregateReport(dry_run=dry_run)
        for cleaner, outcome in zip(cleaners, outcomes, strict=True):
            if isinstance(outcome, CleanupResult):
                report.results.append(outcome)
                continue
            failure = outcome if isinstance(outcome, Exception) else RuntimeError(repr(outcome))
            logger.error("Cleaner %s aborted: %s", cleaner.name, failure)
            self.sink.record(cleaner.name, failure)
            report.results.append(CleanupResult(cleaner.name, dry_run=dry_run, failure=failure))

        report.cancelled = self.cancelled
        logger.debug("Completed cleanup in %.2fs", time.monotonic() - started)
        return report

    async def _run_cleaner(
        self,
        cleaner: Cleaner,
        dry_run: bool,
        semaphore: asyncio.Semaphore,
    ) -> CleanupResult:
        started = time.monotonic()
        result = CleanupResult(cleaner.name, dry_run=dry_run)

        if not cleaner.supported(self.resolver.platform):
            result.skip_reason = SkipReason.UNSUPPORTED
            return result

        try:
            collected = await asyncio.to_thread(self._collect, cleaner)
        except Exception as exc:
            logger.error("Cleaner %s failed while collecting: %s", cleaner.name, exc)
            self.sink.record(cleaner.name, exc)
            result.failure = exc
            return result

        result.missed.extend(collected.rejected)
        result.errors.extend(collected.errors)

        if not collected.candidates:
            if not result.errors:
                result.skip_reason = SkipReason.NO_FILES
            return result

        if is_notify_only(cleaner.rules):
            result.notified = [CleanedFile(p, r.size_bytes) for p, r in collected.candidates]
            logger.info(
                "%s: %d files require manual cleanup approval",
                cleaner.name,
                len(result.notified),
            )
            return result

        outcomes = await asyncio.gather(
            *(self._remove(cleaner.name, path, res, dry_run, semaphore) for path, res in collected.candidates)
        )
        for outcome in outcomes:
            if isinstance(outcome, CleanedFile):
                result.files_removed.append(outcome)
            else:
                result.missed.append(outcome)

        logger.debug("Cleaner %s took %.2fs", cleaner.name, time.monotonic() - started)
        return result

    def _collect(self, cleaner: Cleaner) -> _Collected:
        """Resolve locations and apply rules; runs in a worker thread."""
        collected = _Collected()
        seen: set[Path] = set()
        now = self._clock()

        for descriptor in cleaner.locations_for(self.resolver.platform):
            try:
                for location in self.resolver.resolve(descriptor, self.sink, cleaner.name):
                    for path in expand(location, self.sink, cleaner.name):
                        if path in seen:
                            continue
                        seen.add(path)
                        self._classify(cleaner, path, now, collected)
            except OSError as exc:
                logger.warning("Cleaner %s cannot resolve %s: %s", cleaner.name, descriptor, exc)
                self.sink.record(cleaner.name, exc)
                collected.errors.append(exc)

        collected.candidates.sort(key=lambda item: str(item[0]))
        return collected

    def _classify(self, cleaner: Cleaner, path: Path, now: datetime, collected: _Collected) -> None:
        try:
            resource = Resource.from_path(path, follow_symlinks=False)
        except FileNotFoundError:
            logger.debug("Candidate vanished before inspection: %s", path)
            return
        except OSError as exc:
            logger.warning("Failed to get metadata for %s: %s", path, exc)
            self.sink.record(cleaner.name, exc)
            collected.errors.append(exc)
            return

        if passes_all(cleaner.rules, path, resource, now):
            collected.candidates.append((path, resource))
        else:
            collected.rejected.append(
                DeletionError(path, MissKind.RULE, "did not pass all rules", resource.size_bytes)
            )

    async def _remove(
        self,
        cleaner_name: str,
        path: Path,
        resource: Resource,
        dry_run: bool,
        semaphore: asyncio.Semaphore,
    ) -> CleanedFile | DeletionError:
        async with semaphore:
            if self._cancel.is_set():
                return DeletionError(path, MissKind.CANCELLED, "run cancelled before deletion", resource.size_bytes)

            if dry_run:
                logger.debug("Would remove %s", path)
                return CleanedFile(path, resource.size_bytes)

            try:
                await asyncio.to_thread(remove_path, path, resource.size_bytes)
            except DeletionError as exc:
                if exc.kind is MissKind.VANISHED:
                    logger.debug("Candidate vanished before deletion: %s", path)
                else:
                    logger.warning("Failed to remove %s: %s", path, exc.message)
                    self.sink.record(cleaner_name, exc)
                return exc

            logger.debug("Removed %s", path)
            return CleanedFile(path, resource.size_bytes)
