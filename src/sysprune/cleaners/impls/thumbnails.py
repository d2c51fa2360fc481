"""Thumbnail and icon caches."""

from __future__ import annotations

from ...locations import PerUser, Platform
from ..base import Cleaner

_EXPLORER = "AppData/Local/Microsoft/Windows/Explorer"

CLEANER = Cleaner(
    name="thumbnails",
    description="Thumbnail and icon caches",
    locations=(
        PerUser(f"{_EXPLORER}/thumbcache_*", platform=Platform.WINDOWS),
        PerUser(f"{_EXPLORER}/iconcache_*", platform=Platform.WINDOWS),
        PerUser(".cache/thumbnails/*", platform=Platform.POSIX),
    ),
)
