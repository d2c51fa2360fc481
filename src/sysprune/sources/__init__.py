"""Resource sources: local globs, remote object stores and vault exports."""

from __future__ import annotations

from .base import Source
from .local import LocalGlobSource
from .s3 import ObjectStoreSource
from .vault import VaultExportSource, VaultProvider

# Closed set of Source variants understood by the configuration loader.
AnySource = LocalGlobSource | ObjectStoreSource | VaultExportSource

__all__ = [
    "AnySource",
    "LocalGlobSource",
    "ObjectStoreSource",
    "Source",
    "VaultExportSource",
    "VaultProvider",
]
