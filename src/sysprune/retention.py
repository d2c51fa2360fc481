"""Retention policy evaluation.

Decides which resources of one Source should be deleted. Pure: no I/O, the
input sequence is never mutated.

Ages are whole UTC calendar days: ``now.date() - modified_at.date()`` with both
sides converted to UTC first, so DST transitions never shift a resource across
a day boundary. Resources dated in the future get age zero and are never
selected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from .resource import Resource

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class RetentionPolicy:
    """Immutable retention rules for one pruning pass."""

    enabled: bool = False
    max_age_days: int = 30
    weekly_keep: int = 0
    monthly_keep: int = 0
    min_keep_count: int = 1

    def __post_init__(self) -> None:
        for name in ("max_age_days", "weekly_keep", "monthly_keep", "min_keep_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


class Verdict(Enum):
    """Why a resource was kept or marked."""

    FLOOR = "floor"  # One of the min_keep_count newest
    FUTURE = "future"  # Dated after now, likely clock skew
    FRESH = "fresh"  # Not older than max_age_days
    WEEKLY = "weekly"  # Representative of a recent week bucket
    MONTHLY = "monthly"  # Representative of a recent month bucket
    RESTORED = "restored"  # Un-marked to satisfy the floor
    EXPIRED = "expired"  # Marked for deletion
    DISABLED = "disabled"  # Policy disabled


@dataclass(frozen=True)
class Decision:
    """Evaluation outcome for a single resource."""

    resource: Resource
    age_days: int
    verdict: Verdict

    @property
    def delete(self) -> bool:
        return self.verdict is Verdict.EXPIRED


def _utc(moment: datetime) -> datetime:
    # Naive datetimes are taken to be UTC, as in Resource.
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


def age_in_days(resource: Resource, now: datetime) -> int:
    """Whole UTC calendar days between ``resource`` and ``now``, clamped at zero."""
    modified = resource.modified_at.astimezone(UTC).date()
    today = _utc(now).astimezone(UTC).date()
    return max((today - modified).days, 0)


def _newest_first(resources: Iterable[Resource]) -> list[Resource]:
    # Identifier ascending first, then a stable sort on time gives a deterministic tie-break.
    by_identifier = sorted(resources, key=lambda r: str(r.identifier))
    return sorted(by_identifier, key=lambda r: r.modified_at, reverse=True)


def _representatives(
    expired: Sequence[tuple[Resource, int]],
    width: int,
    keep: int,
) -> set[int]:
    """Indices (into ``expired``) of the newest member of the ``keep`` youngest buckets.

    ``expired`` is ordered newest first, so the first member seen in each bucket
    is its newest.
    """
    if keep <= 0:
        return set()

    chosen: set[int] = set()
    seen_buckets: set[int] = set()
    for index, (_resource, age) in enumerate(expired):
        bucket = age // width
        if bucket in seen_buckets:
            continue
        seen_buckets.add(bucket)
        chosen.add(index)
        if len(seen_buckets) >= keep:
            break
    return chosen


def explain(
    resources: Iterable[Resource],
    policy: RetentionPolicy,
    now: datetime | None = None,
) -> list[Decision]:
    """Evaluate every resource and report the verdict, newest first."""
    clock = _utc(now) if now is not None else datetime.now(UTC)
    ordered = _newest_first(resources)

    if not policy.enabled:
        return [Decision(r, age_in_days(r, clock), Verdict.DISABLED) for r in ordered]

    floor = min(policy.min_keep_count, len(ordered))
    verdicts: list[Verdict] = [Verdict.FLOOR] * floor
    ages = [age_in_days(r, clock) for r in ordered]

    expired: list[tuple[Resource, int]] = []
    expired_positions: list[int] = []
    for position in range(floor, len(ordered)):
        resource = ordered[position]
        if resource.modified_at > clock:
            verdicts.append(Verdict.FUTURE)
        elif ages[position] <= policy.max_age_days:
            verdicts.append(Verdict.FRESH)
        else:
            verdicts.append(Verdict.EXPIRED)
            expired.append((resource, ages[position]))
            expired_positions.append(position)

    weekly = _representatives(expired, DAYS_PER_WEEK, policy.weekly_keep)
    monthly = _representatives(expired, DAYS_PER_MONTH, policy.monthly_keep)
    for index, position in enumerate(expired_positions):
        if index in weekly:
            verdicts[position] = Verdict.WEEKLY
        elif index in monthly:
            verdicts[position] = Verdict.MONTHLY

    marked = [p for p, v in enumerate(verdicts) if v is Verdict.EXPIRED]
    shortfall = policy.min_keep_count - (len(ordered) - len(marked))
    for position in marked[: max(shortfall, 0)]:
        verdicts[position] = Verdict.RESTORED

    return [Decision(r, a, v) for r, a, v in zip(ordered, ages, verdicts, strict=True)]


def evaluate(
    resources: Iterable[Resource],
    policy: RetentionPolicy,
    now: datetime | None = None,
) -> list[Resource]:
    """Return the resources the policy would delete, newest first.

    Args:
        resources: Listing of one Source; need not be sorted.
        policy: Retention policy for this pass.
        now: Reference time; defaults to the current UTC time.

    Returns:
        The deletion set. Never contains one of the ``min_keep_count`` newest
        resources nor a future-dated one.

    """
    decisions = explain(resources, policy, now)
    doomed = [d.resource for d in decisions if d.delete]
    logger.debug(
        "Retention evaluated %d resources, %d marked for deletion",
        len(decisions),
        len(doomed),
    )
    return doomed
