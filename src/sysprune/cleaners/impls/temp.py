"""Per-user and system temporary directories.

POSIX /tmp is left to systemd-tmpfiles or tmpreaper, which know which
service owns what.
"""

from __future__ import annotations

from ...locations import Base, Pattern, PerUser, Platform
from ...rules import OlderThan
from ..base import Cleaner

CLEANER = Cleaner(
    name="temp",
    description="Temporary files",
    locations=(
        PerUser("AppData/Local/Temp/*", platform=Platform.WINDOWS),
        Pattern(Base.SYSTEM_TEMP, "*", platform=Platform.WINDOWS),
    ),
    # Files in use by running programs are usually recent.
    rules=(OlderThan(1),),
)
