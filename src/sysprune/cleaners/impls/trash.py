"""Recycle bin contents.

Only items that were added more than 7 days ago are removed.
"""

from __future__ import annotations

from ...locations import Base, Pattern, PerUser, Platform
from ...rules import OlderThan
from ..base import Cleaner

CLEANER = Cleaner(
    name="trash",
    description="Recycle bin items older than 7 days",
    locations=(
        Pattern(Base.DRIVE_ROOTS, "$RECYCLE.BIN/*", platform=Platform.WINDOWS),
        PerUser(".local/share/Trash/files/*", platform=Platform.POSIX),
        PerUser(".local/share/Trash/info/*", platform=Platform.POSIX),
    ),
    rules=(OlderThan(7),),
)
