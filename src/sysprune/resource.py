"""Immutable snapshot of one prunable item."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path


@dataclass(frozen=True)
class Resource:
    """One candidate object (file, remote object, exported vault item).

    ``identifier`` is a filesystem path for local items and an object key for
    remote ones. ``modified_at`` is always timezone-aware.
    """

    identifier: Path | str
    modified_at: datetime
    size_bytes: int = 0
    is_directory: bool = False

    def __post_init__(self) -> None:
        if self.modified_at.tzinfo is None:
            object.__setattr__(self, "modified_at", self.modified_at.replace(tzinfo=UTC))
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative: {self.size_bytes}")

    @property
    def name(self) -> str:
        """Final component of the identifier."""
        if isinstance(self.identifier, Path):
            return self.identifier.name
        return self.identifier.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def from_path(cls, path: Path, *, follow_symlinks: bool = True) -> Resource:
        """Build a Resource from filesystem metadata.

        Raises:
            OSError: If the path cannot be stat'ed.

        """
        st = path.stat(follow_symlinks=follow_symlinks)
        return cls(
            identifier=path,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            size_bytes=st.st_size,
            is_directory=path.is_dir(),
        )
