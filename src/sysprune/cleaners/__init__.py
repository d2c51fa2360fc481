"""Cleaner catalogue with auto-discovery of the built-in entries."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from collections.abc import Iterable, Sequence

from ..errors import ConfigurationError
from .base import AggregateReport, CleanedFile, Cleaner, CleanupResult, SkipReason, Status

logger = logging.getLogger(__name__)

__all__ = [
    "AggregateReport",
    "CleanedFile",
    "Cleaner",
    "CleanupResult",
    "SkipReason",
    "Status",
    "builtin_cleaners",
    "select_cleaners",
]


def builtin_cleaners() -> list[Cleaner]:
    """Discover every ``CLEANER`` exported by the ``impls`` package, sorted by name."""
    package = importlib.import_module(f"{__package__}.impls")
    found: list[Cleaner] = []

    for _finder, module_name, _is_pkg in pkgutil.iter_modules(package.__path__):
        try:
            mod = importlib.import_module(f"{package.__name__}.{module_name}")
        except ImportError:
            logger.warning("Failed to import cleaner module: %s", module_name, exc_info=True)
            continue

        cleaner = getattr(mod, "CLEANER", None)
        if not isinstance(cleaner, Cleaner):
            continue
        found.append(cleaner)
        logger.debug("Loaded cleaner: %s", cleaner.name)

    return sorted(found, key=lambda c: c.name)


def select_cleaners(
    catalogue: Sequence[Cleaner],
    enabled: Iterable[str] = (),
    disabled: Iterable[str] = (),
) -> list[Cleaner]:
    """Pick the cleaners to run, keeping catalogue order.

    An empty ``enabled`` selects everything not ``disabled``.

    Raises:
        ConfigurationError: On duplicate catalogue names or unknown selections.

    """
    names = [c.name for c in catalogue]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate cleaner names: {', '.join(duplicates)}")

    wanted = set(enabled)
    excluded = set(disabled)
    unknown = (wanted | excluded) - set(names)
    if unknown:
        raise ConfigurationError(f"Unknown cleaners: {', '.join(sorted(unknown))}")

    selected: list[Cleaner] = []
    for cleaner in catalogue:
        if wanted and cleaner.name not in wanted:
            continue
        if cleaner.name in excluded:
            logger.info("Cleaner disabled by config: %s", cleaner.name)
            continue
        selected.append(cleaner)
    return selected
