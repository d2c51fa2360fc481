"""File system watcher that notices new exports landing in backup sources."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileCreatedEvent, FileMovedEvent, FileSystemEventHandler
from watchdog.observers import Observer

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent

    from .sources import LocalGlobSource


class ExportEventHandler(FileSystemEventHandler):
    """Maps file system events onto the sources whose listing they change."""

    def __init__(
        self,
        sources: Sequence[LocalGlobSource],
        callback: Callable[[str], None],
        logger: logging.Logger,
    ) -> None:
        """Initialize the event handler.

        Args:
            sources: Local sources to match paths against.
            callback: Called with the source name for every matching event.
            logger: Logger instance.

        """
        super().__init__()
        self.sources = list(sources)
        self.callback = callback
        self.logger = logger

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileCreatedEvent) and not event.is_directory:
            self._check_path(Path(str(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Exporters often write to a temporary name and rename when done."""
        if isinstance(event, FileMovedEvent) and not event.is_directory:
            self._check_path(Path(str(event.dest_path)))

    def _check_path(self, path: Path) -> None:
        for source in self.sources:
            if source.matches(path):
                self.logger.debug("New export for %s: %s", source.name, path.name)
                self.callback(source.name)


class ExportWatcher:
    """Watches local source roots and queues the names of changed sources."""

    def __init__(self, sources: Sequence[LocalGlobSource], logger: logging.Logger) -> None:
        self.sources = list(sources)
        self.logger = logger
        self._observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: asyncio.Queue[str] = asyncio.Queue()

    def _on_export(self, source_name: str) -> None:
        # Runs on the watchdog thread.
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._pending.put_nowait, source_name)

    def start(self) -> None:
        """Start watching; must be called from inside the running event loop."""
        if self._observer is not None:
            return

        self._loop = asyncio.get_running_loop()
        self._observer = Observer()
        handler = ExportEventHandler(self.sources, self._on_export, self.logger)

        for source in self.sources:
            if source.root.is_dir():
                self._observer.schedule(handler, str(source.root), recursive=True)
                self.logger.info("Watching %s: %s", source.name, source.root)
            else:
                self.logger.warning("Source root does not exist: %s", source.root)

        self._observer.start()
        self.logger.info("Export watcher started")

    def stop(self) -> None:
        """Stop watching directories."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
            self.logger.info("Export watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    async def next_source(self, timeout: float | None = None) -> str | None:
        """Wait for the next changed source name, or None on timeout."""
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._pending.get(), timeout=timeout)
            return await self._pending.get()
        except TimeoutError:
            return None
