"""One retention pass over a single Source."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from .errors import DeletionError, MissKind, SourceError, SourceErrorKind
from .errorsink import ErrorSink
from .resource import Resource
from .retention import RetentionPolicy, evaluate
from .sources import Source

logger = logging.getLogger(__name__)


@dataclass
class PruneReport:
    """Outcome of pruning one Source."""

    source_name: str
    dry_run: bool = False
    examined: int = 0
    removed: list[Resource] = field(default_factory=list)
    skipped: list[Resource] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    @property
    def bytes_freed(self) -> int:
        return sum(r.size_bytes for r in self.removed)

    @property
    def failed(self) -> bool:
        """True if the Source could not be enumerated at all."""
        return any(isinstance(e, SourceError) for e in self.errors)


def prune_source(
    source: Source,
    policy: RetentionPolicy,
    sink: ErrorSink,
    *,
    dry_run: bool = False,
    cancel: threading.Event | None = None,
    now: datetime | None = None,
) -> PruneReport:
    """Enumerate ``source``, evaluate ``policy`` and delete the verdict one by one.

    A failed deletion is recorded and the remaining deletions still run. After
    ``cancel`` is set no further deletion is attempted and the rest of the
    deletion set is reported as skipped.
    """
    report = PruneReport(source_name=source.name, dry_run=dry_run)

    try:
        resources = source.enumerate()
    except SourceError as exc:
        logger.error("Cannot enumerate %s: %s", source.name, exc)
        sink.record(source.name, exc)
        report.errors.append(exc)
        return report
    except Exception as exc:
        logger.exception("Unexpected failure enumerating %s", source.name)
        error = SourceError(SourceErrorKind.UNREACHABLE, source.name, f"{type(exc).__name__}: {exc}")
        sink.record(source.name, error)
        report.errors.append(error)
        return report

    report.examined = len(resources)
    doomed = evaluate(resources, policy, now)
    logger.info("%s: %d of %d resources past retention", source.name, len(doomed), len(resources))

    for resource in doomed:
        if cancel is not None and cancel.is_set():
            report.skipped.append(resource)
            continue

        if dry_run:
            logger.info("Would remove %s from %s", resource.identifier, source.name)
            report.removed.append(resource)
            continue

        try:
            source.delete(resource)
        except DeletionError as exc:
            if exc.kind is MissKind.VANISHED:
                logger.warning("Already gone: %s", resource.identifier)
                report.skipped.append(resource)
                continue
            logger.warning("Failed to remove %s: %s", resource.identifier, exc)
            sink.record(source.name, exc)
            report.errors.append(exc)
            continue

        logger.info("Removed %s from %s", resource.identifier, source.name)
        report.removed.append(resource)

    if report.skipped and cancel is not None and cancel.is_set():
        logger.warning("%s: cancelled, %d deletions not attempted", source.name, len(report.skipped))

    return report
