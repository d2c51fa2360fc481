"""Tests for the built-in cleaner catalogue and selection."""

from __future__ import annotations

from pathlib import Path

import pytest

from sysprune.cleaners import (
    AggregateReport,
    CleanedFile,
    Cleaner,
    CleanupResult,
    SkipReason,
    Status,
    builtin_cleaners,
    select_cleaners,
)
from sysprune.errors import ConfigurationError, DeletionError, MissKind
from sysprune.locations import Fixed, PerUser, Platform
from sysprune.rules import OlderThan

EXPECTED = ["browsers", "downloads", "logs", "shaders", "temp", "thumbnails", "trash"]


class TestBuiltinCleaners:
    """Tests for auto-discovery of the built-in catalogue."""

    def test_discovers_every_category(self) -> None:
        assert [c.name for c in builtin_cleaners()] == EXPECTED

    def test_names_are_unique(self) -> None:
        names = [c.name for c in builtin_cleaners()]
        assert len(names) == len(set(names))

    def test_every_cleaner_has_locations(self) -> None:
        for cleaner in builtin_cleaners():
            assert cleaner.locations, cleaner.name

    def test_windows_supports_everything(self) -> None:
        assert all(c.supported(Platform.WINDOWS) for c in builtin_cleaners())

    def test_downloads_is_windows_only(self) -> None:
        downloads = next(c for c in builtin_cleaners() if c.name == "downloads")
        assert downloads.supported(Platform.POSIX) is False

    def test_temp_leaves_posix_tmp_alone(self) -> None:
        temp = next(c for c in builtin_cleaners() if c.name == "temp")
        assert temp.locations_for(Platform.POSIX) == []

    @pytest.mark.parametrize("name,days", [("logs", 14), ("trash", 7)])
    def test_age_rules(self, name: str, days: int) -> None:
        cleaner = next(c for c in builtin_cleaners() if c.name == name)
        assert OlderThan(days) in cleaner.rules


class TestSelectCleaners:
    """Tests for enabled/disabled selection."""

    @pytest.fixture
    def catalogue(self) -> list[Cleaner]:
        return [Cleaner(name, (Fixed(Path("/x")),)) for name in ("a", "b", "c")]

    def test_empty_selection_takes_all(self, catalogue: list[Cleaner]) -> None:
        assert select_cleaners(catalogue) == catalogue

    def test_enabled_keeps_catalogue_order(self, catalogue: list[Cleaner]) -> None:
        selected = select_cleaners(catalogue, enabled=["c", "a"])
        assert [c.name for c in selected] == ["a", "c"]

    def test_disabled(self, catalogue: list[Cleaner]) -> None:
        selected = select_cleaners(catalogue, disabled=["b"])
        assert [c.name for c in selected] == ["a", "c"]

    def test_unknown_name_rejected(self, catalogue: list[Cleaner]) -> None:
        with pytest.raises(ConfigurationError, match="Unknown cleaners: nope"):
            select_cleaners(catalogue, enabled=["nope"])

    def test_duplicate_names_rejected(self, catalogue: list[Cleaner]) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate cleaner names: a"):
            select_cleaners([*catalogue, catalogue[0]])


class TestCleanerPlatforms:
    """Tests for per-platform descriptor filtering."""

    def test_locations_for(self) -> None:
        posix = PerUser(".cache/*", platform=Platform.POSIX)
        anywhere = Fixed(Path("/x"))
        cleaner = Cleaner("mixed", (posix, anywhere))

        assert cleaner.locations_for(Platform.POSIX) == [posix, anywhere]
        assert cleaner.locations_for(Platform.WINDOWS) == [anywhere]


class TestCleanupResultStatus:
    """Tests for the derived status of a cleaner result."""

    def test_cleaned(self) -> None:
        result = CleanupResult("x", files_removed=[CleanedFile(Path("/a"), 5)])
        assert result.status is Status.CLEANED
        assert result.bytes_freed == 5

    def test_skip_reason(self) -> None:
        result = CleanupResult("x", skip_reason=SkipReason.NO_FILES)
        assert result.status is Status.SKIPPED

    def test_partial_on_failed_deletion(self) -> None:
        result = CleanupResult(
            "x",
            files_removed=[CleanedFile(Path("/a"), 5)],
            missed=[DeletionError(Path("/b"), MissKind.PERMISSION, "denied", 7)],
        )
        assert result.status is Status.PARTIAL
        assert result.missed_bytes == 7

    def test_rule_rejections_are_not_failures(self) -> None:
        result = CleanupResult(
            "x",
            files_removed=[CleanedFile(Path("/a"), 5)],
            missed=[DeletionError(Path("/b"), MissKind.RULE, "too new", 7)],
        )
        assert result.status is Status.CLEANED
        assert result.missed_bytes == 0
        assert result.rule_rejected == 1

    def test_failure_wins(self) -> None:
        result = CleanupResult("x", files_removed=[CleanedFile(Path("/a"), 5)], failure=RuntimeError("x"))
        assert result.status is Status.FAILED


class TestAggregateReport:
    """Tests for the merged report."""

    def test_totals(self) -> None:
        report = AggregateReport(
            results=[
                CleanupResult("a", files_removed=[CleanedFile(Path("/a"), 5)]),
                CleanupResult(
                    "b",
                    files_removed=[CleanedFile(Path("/b"), 10)],
                    missed=[DeletionError(Path("/c"), MissKind.IN_USE, "busy", 3)],
                ),
            ]
        )

        assert len(report.files_removed) == 2
        assert report.bytes_freed == 15
        assert report.missed_bytes == 3
        assert len(report.errors) == 1
        assert report.result_for("b") is report.results[1]
        assert report.result_for("missing") is None

    def test_all_failed(self) -> None:
        assert AggregateReport().all_failed is False
        failed = AggregateReport(results=[CleanupResult("a", failure=RuntimeError("x"))])
        assert failed.all_failed is True
