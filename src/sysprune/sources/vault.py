"""Previously exported password-vault snapshots on local disk."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from .local import LocalGlobSource


class VaultProvider(Enum):
    """Exporter that produced the files, which fixes the on-disk layout."""

    BITWARDEN = "bitwarden"
    ONEPASSWORD = "onepassword"

    def layout(self, unit: str) -> str:
        """Glob, relative to the backup root, matching one unit's exports."""
        if self is VaultProvider.BITWARDEN:
            return f"backup-{unit}/*.json"
        return f"{unit}/export_*.zip"


class VaultExportSource(LocalGlobSource):
    """Exports for one organisational unit (BitWarden org, 1Password account)."""

    def __init__(self, name: str, root: Path, provider: VaultProvider, unit: str) -> None:
        super().__init__(name, root, provider.layout(unit))
        self.provider = provider
        self.unit = unit

    def __repr__(self) -> str:
        return f"VaultExportSource({self.name!r}, {self.provider.value!r}, {self.unit!r})"
