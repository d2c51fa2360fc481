"""Installer and update payloads left behind after installation."""

from __future__ import annotations

from ...locations import Base, Pattern, Platform
from ..base import Cleaner

CLEANER = Cleaner(
    name="downloads",
    description="Windows Update, prefetch and driver installer downloads",
    locations=(
        Pattern(Base.WINDOWS_DIR, "Downloaded Program Files/*", platform=Platform.WINDOWS),
        Pattern(Base.WINDOWS_DIR, "SoftwareDistribution/Download/*", platform=Platform.WINDOWS),
        Pattern(Base.WINDOWS_DIR, "Prefetch/*", platform=Platform.WINDOWS),
        Pattern(Base.PROGRAM_DATA, "NVIDIA Corporation/Downloader/*", platform=Platform.WINDOWS),
        Pattern(Base.SYSTEM_DRIVE, "NinitePro/NiniteDownloads/Files/*", platform=Platform.WINDOWS),
    ),
)
