"""Crash dumps and diagnostic logs.

Only logs older than 14 days are removed; recent ones may still be needed
for debugging.
"""

from __future__ import annotations

from ...locations import Base, Pattern, PerUser, Platform
from ...rules import OlderThan
from ..base import Cleaner

CLEANER = Cleaner(
    name="logs",
    description="Diagnostic logs and crash dumps older than 14 days",
    locations=(
        Pattern(Base.PROGRAM_DATA, "NVIDIA/*", platform=Platform.WINDOWS),
        Pattern(Base.PROGRAM_DATA, "Microsoft/Windows/WER/ReportArchive/*", platform=Platform.WINDOWS),
        Pattern(Base.WINDOWS_DIR, "Panther/*", platform=Platform.WINDOWS),
        Pattern(Base.WINDOWS_DIR, "Minidump/*", platform=Platform.WINDOWS),
        Pattern(Base.SYSTEM_LOGS, "**/*.gz", platform=Platform.POSIX),
        Pattern(Base.SYSTEM_LOGS, "**/*.[0-9]", platform=Platform.POSIX),
        PerUser(".local/share/xorg/*.old", platform=Platform.POSIX),
    ),
    rules=(OlderThan(14),),
)
