"""Tests for the shared error sink."""

from __future__ import annotations

import threading

from sysprune.errors import DeletionError, MissKind
from sysprune.errorsink import ErrorSink, SinkEntry


class TestErrorSink:
    """Tests for ErrorSink."""

    def test_starts_empty(self) -> None:
        sink = ErrorSink()
        assert len(sink) == 0
        assert sink.snapshot() == []

    def test_record_and_snapshot(self) -> None:
        sink = ErrorSink()
        error = ValueError("boom")

        sink.record("logs", error)

        assert sink.snapshot() == [SinkEntry("logs", error)]
        assert len(sink) == 1

    def test_snapshot_is_a_copy(self) -> None:
        sink = ErrorSink()
        sink.record("logs", ValueError("boom"))

        sink.snapshot().clear()

        assert len(sink) == 1

    def test_drain_empties(self) -> None:
        sink = ErrorSink()
        sink.record("a", ValueError("1"))
        sink.record("b", ValueError("2"))

        drained = sink.drain()

        assert [e.origin for e in drained] == ["a", "b"]
        assert len(sink) == 0

    def test_entry_str(self) -> None:
        entry = SinkEntry("trash", DeletionError("/x", MissKind.PERMISSION, "denied"))
        assert str(entry) == "[trash] /x: permission: denied"

    def test_concurrent_records_are_all_kept(self) -> None:
        sink = ErrorSink()
        per_thread = 200

        def worker(name: str) -> None:
            for i in range(per_thread):
                sink.record(name, RuntimeError(str(i)))

        threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        entries = sink.drain()
        assert len(entries) == 8 * per_thread
        for n in range(8):
            mine = [int(str(e.error)) for e in entries if e.origin == f"t{n}"]
            assert mine == list(range(per_thread))
