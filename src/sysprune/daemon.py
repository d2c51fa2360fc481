"""Watch-mode daemon: prune a backup source whenever new exports settle."""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from .errorsink import ErrorSink
from .pruner import PruneReport, prune_source
from .sources import LocalGlobSource
from .watcher import ExportWatcher

if TYPE_CHECKING:
    from .config import SysPruneConfig

logger = logging.getLogger(__name__)


@dataclass
class DaemonStats:
    """Statistics for the daemon."""

    start_time: datetime = field(default_factory=datetime.now)
    passes: int = 0
    resources_removed: int = 0
    bytes_freed: int = 0
    errors: int = 0


class PruneDaemon:
    """Runs retention passes over the configured sources."""

    def __init__(self, config: SysPruneConfig, sink: ErrorSink, *, dry_run: bool = False) -> None:
        self.config = config
        self.sink = sink
        self.dry_run = dry_run
        self.stats = DaemonStats()
        self._cancel = threading.Event()
        self._running = False
        self._pending: dict[str, float] = {}  # source name -> loop time of last event

        watchable = [s for s in config.sources if isinstance(s, LocalGlobSource)]
        self.watcher = ExportWatcher(watchable, logger)

    def _record(self, report: PruneReport) -> None:
        self.stats.passes += 1
        self.stats.resources_removed += len(report.removed)
        self.stats.bytes_freed += report.bytes_freed
        self.stats.errors += len(report.errors)

    async def prune(self, source_name: str) -> PruneReport:
        """Prune a single source in a worker thread."""
        source = self.config.source(source_name)
        report = await asyncio.to_thread(
            prune_source,
            source,
            self.config.retention,
            self.sink,
            dry_run=self.dry_run,
            cancel=self._cancel,
        )
        self._record(report)
        return report

    async def run_once(self) -> list[PruneReport]:
        """Prune every configured source once."""
        if not self.config.retention.enabled:
            logger.info("Retention is disabled; nothing to prune")
        reports: list[PruneReport] = []
        for source in self.config.sources:
            if self._cancel.is_set():
                break
            reports.append(await self.prune(source.name))
        return reports

    async def _process_settled(self) -> None:
        now = asyncio.get_running_loop().time()
        settled = [
            name for name, stamp in self._pending.items() if now - stamp >= self.config.debounce_seconds
        ]
        for name in settled:
            del self._pending[name]
            logger.info("New exports settled for %s; pruning", name)
            await self.prune(name)

    async def run_daemon(self, poll_interval: float = 1.0) -> None:
        """Run until SIGINT/SIGTERM, pruning sources after their exports settle."""
        self._running = True
        logger.info("Starting prune daemon...")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_shutdown)

        self.watcher.start()

        try:
            while self._running:
                name = await self.watcher.next_source(timeout=poll_interval)
                if name is not None:
                    self._pending[name] = loop.time()
                await self._process_settled()
        except asyncio.CancelledError:
            logger.info("Daemon cancelled")
            raise
        finally:
            self.watcher.stop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            logger.info(
                "Daemon stopped. Stats: passes=%d, removed=%d, errors=%d",
                self.stats.passes,
                self.stats.resources_removed,
                self.stats.errors,
            )

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self.stop()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def stop(self) -> None:
        """Stop the daemon and any in-progress pass."""
        self._running = False
        self._cancel.set()
