"""Pre-flight check for elevated rights."""

from __future__ import annotations

import ctypes
import logging
import os

from .errors import ElevationError
from .locations import Platform

logger = logging.getLogger(__name__)


def is_elevated(platform: Platform | None = None) -> bool:
    """Check whether the process runs as root / an Administrator."""
    platform = platform or Platform.current()

    if platform is Platform.WINDOWS:
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            logger.warning("Unable to query Administrator status, assuming not elevated")
            return False

    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        logger.warning("Unsupported platform, assuming not elevated")
        return False
    return geteuid() == 0


def check(platform: Platform | None = None) -> ElevationError | None:
    """Return an error describing the missing capability, or None when elevated."""
    platform = platform or Platform.current()
    if is_elevated(platform):
        return None

    capability = "Administrator rights" if platform is Platform.WINDOWS else "root (effective uid 0)"
    logger.error("Failed to elevate privileges: %s required", capability)
    return ElevationError(capability)
