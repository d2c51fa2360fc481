"""Web browser disk caches."""

from __future__ import annotations

from ...locations import PerUser, Platform
from ..base import Cleaner

_LOCAL = "AppData/Local"

CLEANER = Cleaner(
    name="browsers",
    description="Browser disk caches",
    locations=(
        PerUser(f"{_LOCAL}/Microsoft/Windows/INetCache/IE/*", platform=Platform.WINDOWS),
        PerUser(f"{_LOCAL}/Microsoft/Edge/User Data/Default/Cache/*", platform=Platform.WINDOWS),
        PerUser(f"{_LOCAL}/Google/Chrome/User Data/Default/Cache/*", platform=Platform.WINDOWS),
        PerUser(f"{_LOCAL}/Mozilla/Firefox/Profiles/*.default-release/cache2/*", platform=Platform.WINDOWS),
        PerUser(".cache/google-chrome/*/Cache/*", platform=Platform.POSIX),
        PerUser(".cache/chromium/*/Cache/*", platform=Platform.POSIX),
        PerUser(".cache/mozilla/firefox/*/cache2/*", platform=Platform.POSIX),
    ),
)
