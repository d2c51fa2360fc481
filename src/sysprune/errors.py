"""Error taxonomy shared by the pruning engine and the cleaner executor."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class SysPruneError(Exception):
    """Base class for all sysprune errors."""


class ConfigurationError(SysPruneError):
    """Malformed catalogue or configuration, fatal at load time."""


class SourceErrorKind(Enum):
    """Why a Source could not produce a listing."""

    INCONSISTENT = "inconsistent"  # Listing changed or was malformed mid-snapshot
    UNREACHABLE = "unreachable"  # Backend could not be contacted or read


class SourceError(SysPruneError):
    """Enumeration failure, fatal to one Source or Cleaner pass only."""

    def __init__(self, kind: SourceErrorKind, source: str, message: str) -> None:
        super().__init__(f"{source}: {kind.value}: {message}")
        self.kind = kind
        self.source = source
        self.message = message


class MissKind(Enum):
    """Classification of a resource that was not removed."""

    RULE = "rule"
    IN_USE = "in_use"
    PERMISSION = "permission"
    VANISHED = "vanished"
    CANCELLED = "cancelled"
    OTHER = "other"


class DeletionError(SysPruneError):
    """Per-resource deletion failure; always recovered locally."""

    def __init__(
        self,
        identifier: Path | str,
        kind: MissKind,
        message: str,
        size_bytes: int = 0,
    ) -> None:
        super().__init__(f"{identifier}: {kind.value}: {message}")
        self.identifier = identifier
        self.kind = kind
        self.message = message
        self.size_bytes = size_bytes


class ElevationError(SysPruneError):
    """The process lacks the rights needed for destructive cleanup."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"Insufficient privileges: {capability}")
        self.capability = capability
