"""Local filesystem glob source."""

from __future__ import annotations

import errno
import logging
import shutil
from pathlib import Path

from ..errors import DeletionError, MissKind, SourceError, SourceErrorKind
from ..locations import validate_glob
from ..resource import Resource

logger = logging.getLogger(__name__)


def classify_os_error(exc: OSError) -> MissKind:
    """Map an OSError raised while deleting to a MissKind."""
    if isinstance(exc, FileNotFoundError):
        return MissKind.VANISHED
    if isinstance(exc, PermissionError):
        return MissKind.PERMISSION
    if exc.errno in (errno.ETXTBSY, errno.EBUSY):
        return MissKind.IN_USE
    # ERROR_SHARING_VIOLATION on Windows
    if getattr(exc, "winerror", None) == 32:
        return MissKind.IN_USE
    return MissKind.OTHER


def remove_path(path: Path, size_bytes: int = 0) -> None:
    """Remove a file or directory tree, converting failures to DeletionError."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        raise DeletionError(path, classify_os_error(exc), str(exc), size_bytes) from exc


class LocalGlobSource:
    """Resources matching a glob pattern beneath a root directory."""

    def __init__(self, name: str, root: Path, pattern: str = "*") -> None:
        # Raises ConfigurationError for an unsafe glob.
        self.name = name
        self.root = root
        self.pattern = validate_glob(pattern)

    def __repr__(self) -> str:
        return f"LocalGlobSource({self.name!r}, {str(self.root)!r}, {self.pattern!r})"

    def matches(self, path: Path) -> bool:
        """Check whether ``path`` would be part of this source's listing."""
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        return relative.match(self.pattern)

    def enumerate(self) -> list[Resource]:
        """Glob the root and stat every match."""
        if not self.root.is_dir():
            raise SourceError(SourceErrorKind.UNREACHABLE, self.name, f"not a directory: {self.root}")

        try:
            matches = sorted(self.root.glob(self.pattern))
        except OSError as exc:
            raise SourceError(SourceErrorKind.UNREACHABLE, self.name, str(exc)) from exc

        resources: list[Resource] = []
        for path in matches:
            if path.is_symlink():
                logger.debug("Skipping symlink in %s: %s", self.name, path)
                continue
            try:
                resources.append(Resource.from_path(path))
            except FileNotFoundError as exc:
                raise SourceError(
                    SourceErrorKind.INCONSISTENT,
                    self.name,
                    f"{path} disappeared during enumeration",
                ) from exc
            except OSError as exc:
                raise SourceError(SourceErrorKind.UNREACHABLE, self.name, f"{path}: {exc}") from exc

        logger.debug("Enumerated %d resources from %s", len(resources), self.name)
        return resources

    def delete(self, resource: Resource) -> None:
        remove_path(Path(resource.identifier), resource.size_bytes)
