"""Declarative, platform-aware location descriptors and their resolver.

Descriptors are plain data. Nothing touches the filesystem until
``Resolver.resolve`` is iterated, and every call walks the filesystem again.
"""

from __future__ import annotations

import logging
import os
import re
import stat
import string
import sys
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath

from .errors import ConfigurationError
from .errorsink import ErrorSink

logger = logging.getLogger(__name__)


class Platform(Enum):
    """Platform family a descriptor applies to."""

    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def current(cls) -> Platform:
        return cls.WINDOWS if os.name == "nt" else cls.POSIX


class Base(Enum):
    """Well-known platform roots a descriptor can be anchored to."""

    USER_PROFILES = "user_profiles"  # Every user's home directory
    HOME = "home"  # The invoking user's home directory
    SYSTEM_TEMP = "system_temp"
    PROGRAM_DATA = "program_data"
    WINDOWS_DIR = "windows_dir"
    SYSTEM_DRIVE = "system_drive"
    DRIVE_ROOTS = "drive_roots"
    SYSTEM_LOGS = "system_logs"


_SEPARATORS = re.compile(r"[\\/]")


def validate_glob(pattern: str) -> str:
    """Reject glob patterns the resolver cannot expand safely.

    Raises:
        ConfigurationError: For empty or absolute patterns, ``..`` components,
            ``**`` mixed into a component, or unbalanced brackets.

    """
    if not pattern or not pattern.strip():
        raise ConfigurationError("Glob pattern is empty")
    if PurePosixPath(pattern).is_absolute() or PureWindowsPath(pattern).drive:
        raise ConfigurationError(f"Glob pattern must be relative to its base: {pattern!r}")

    for part in _SEPARATORS.split(pattern):
        if part == "..":
            raise ConfigurationError(f"Glob pattern may not climb out of its base: {pattern!r}")
        if "**" in part and part != "**":
            raise ConfigurationError(f"'**' must be a whole path component: {pattern!r}")
        depth = 0
        for char in part:
            if char == "[":
                if depth:
                    raise ConfigurationError(f"Nested '[' in glob pattern: {pattern!r}")
                depth = 1
            elif char == "]" and depth:
                depth = 0
        if depth:
            raise ConfigurationError(f"Unbalanced '[' in glob pattern: {pattern!r}")
    return pattern


@dataclass(frozen=True)
class Fixed:
    """A single literal path, yielded only if it exists."""

    path: Path
    platform: Platform | None = None


@dataclass(frozen=True)
class PerUser:
    """A glob relative to every root of ``base`` (one per user profile by default)."""

    relative_glob: str
    base: Base = Base.USER_PROFILES
    platform: Platform | None = None

    def __post_init__(self) -> None:
        validate_glob(self.relative_glob)


@dataclass(frozen=True)
class Pattern:
    """A glob rooted at a literal directory or a platform base."""

    base: Base | Path
    glob: str
    platform: Platform | None = None

    def __post_init__(self) -> None:
        validate_glob(self.glob)


LocationDescriptor = Fixed | PerUser | Pattern


def applies_to(descriptor: LocationDescriptor, platform: Platform) -> bool:
    """Check whether a descriptor is meant for ``platform``."""
    return descriptor.platform is None or descriptor.platform is platform


def _existing(*paths: Path | None) -> list[Path]:
    return [p for p in paths if p is not None and p.is_dir()]


def _env_path(environ: Mapping[str, str], name: str) -> Path | None:
    value = environ.get(name)
    return Path(value) if value else None


def _children(parent: Path) -> list[Path]:
    try:
        return sorted(p for p in parent.iterdir() if p.is_dir() and not p.is_symlink())
    except OSError as exc:
        logger.warning("Cannot list %s: %s", parent, exc)
        return []


@dataclass
class PlatformRoots:
    """Looks up the concrete directories behind each ``Base``.

    ``overrides`` replaces the lookup for individual bases; it exists so hosts
    and tests can pin roots without touching the real system.
    """

    platform: Platform = field(default_factory=Platform.current)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    overrides: Mapping[Base, Callable[[], list[Path]]] = field(default_factory=dict)

    def roots(self, base: Base) -> list[Path]:
        """Current directories for ``base``; empty when the base does not exist here."""
        if base in self.overrides:
            return list(self.overrides[base]())
        if self.platform is Platform.WINDOWS:
            return self._windows(base)
        return self._posix(base)

    def _posix(self, base: Base) -> list[Path]:
        if base is Base.USER_PROFILES:
            parent = Path("/Users") if sys.platform == "darwin" else Path("/home")
            profiles = _children(parent) if parent.is_dir() else []
            return [p for p in profiles if p.name != "Shared"]
        if base is Base.HOME:
            return _existing(Path.home())
        if base is Base.SYSTEM_TEMP:
            return _existing(Path("/tmp"), Path("/var/tmp"))
        if base is Base.SYSTEM_LOGS:
            return _existing(Path("/var/log"))
        if base in (Base.SYSTEM_DRIVE, Base.DRIVE_ROOTS):
            return [Path("/")]
        return []

    def _windows(self, base: Base) -> list[Path]:
        system_drive = self.environ.get("SystemDrive", "C:")
        windir = _env_path(self.environ, "windir") or _env_path(self.environ, "SystemRoot")
        if base is Base.USER_PROFILES:
            users = Path(f"{system_drive}\\Users")
            skip = {"All Users", "Default", "Default User", "Public"}
            return [p for p in _children(users) if p.name not in skip] if users.is_dir() else []
        if base is Base.HOME:
            return _existing(_env_path(self.environ, "USERPROFILE"))
        if base is Base.SYSTEM_TEMP:
            return _existing(windir / "Temp" if windir else None)
        if base is Base.PROGRAM_DATA:
            return _existing(_env_path(self.environ, "ProgramData"))
        if base is Base.WINDOWS_DIR:
            return _existing(windir)
        if base is Base.SYSTEM_LOGS:
            return _existing(windir / "Logs" if windir else None)
        if base is Base.SYSTEM_DRIVE:
            return _existing(Path(f"{system_drive}\\"))
        if base is Base.DRIVE_ROOTS:
            return _existing(*(Path(f"{letter}:\\") for letter in string.ascii_uppercase))
        return []


class Resolver:
    """Expands location descriptors into candidate paths at execution time."""

    def __init__(self, roots: PlatformRoots | None = None) -> None:
        self.roots = roots or PlatformRoots()

    @property
    def platform(self) -> Platform:
        return self.roots.platform

    def resolve(
        self,
        descriptor: LocationDescriptor,
        sink: ErrorSink | None = None,
        origin: str = "resolver",
    ) -> Iterator[Path]:
        """Lazily yield the paths a descriptor currently designates.

        Descriptors for another platform yield nothing. An unreadable root
        (one user's profile, say) is recorded in ``sink`` and skipped.
        """
        if not applies_to(descriptor, self.platform):
            return

        match descriptor:
            case Fixed(path=path):
                if path.exists():
                    yield path
            case PerUser(relative_glob=relative, base=base):
                for root in self.roots.roots(base):
                    yield from self._glob(root, relative, sink, origin)
            case Pattern(base=Base() as base, glob=pattern):
                for root in self.roots.roots(base):
                    yield from self._glob(root, pattern, sink, origin)
            case Pattern(base=root, glob=pattern):
                yield from self._glob(Path(root), pattern, sink, origin)

    def _glob(
        self,
        root: Path,
        pattern: str,
        sink: ErrorSink | None,
        origin: str,
    ) -> Iterator[Path]:
        if not root.is_dir():
            return
        if not os.access(root, os.R_OK | os.X_OK):
            error = PermissionError(f"Cannot read location root: {root}")
            logger.warning("%s", error)
            if sink is not None:
                sink.record(origin, error)
            return
        try:
            matches = sorted(root.glob(pattern))
        except OSError as exc:
            logger.warning("Failed to glob %s under %s: %s", pattern, root, exc)
            if sink is not None:
                sink.record(origin, exc)
            return
        yield from matches


def expand(
    path: Path,
    sink: ErrorSink | None = None,
    origin: str = "resolver",
) -> Iterator[Path]:
    """Yield ``path`` if it is a regular file, or every regular file beneath it.

    Symbolic links are never followed nor yielded. Sockets, FIFOs and device
    nodes belong to running programs and are never candidates.
    """
    if path.is_symlink():
        logger.warning("Path %s is a symlink; skipping", path)
        return
    if not path.is_dir():
        if _is_regular_file(path, sink, origin):
            yield path
        return

    def _on_error(exc: OSError) -> None:
        logger.warning("Failed to read directory %s", exc.filename)
        if sink is not None:
            sink.record(origin, exc)

    for directory, _dirs, files in os.walk(path, onerror=_on_error):
        for name in sorted(files):
            candidate = Path(directory) / name
            if _is_regular_file(candidate, sink, origin):
                yield candidate


def _is_regular_file(path: Path, sink: ErrorSink | None, origin: str) -> bool:
    try:
        mode = os.lstat(path).st_mode
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Failed to inspect %s: %s", path, exc)
        if sink is not None:
            sink.record(origin, exc)
        return False
    if stat.S_ISLNK(mode):
        logger.debug("Skipping symlink %s", path)
        return False
    if not stat.S_ISREG(mode):
        logger.debug("Skipping special file %s", path)
        return False
    return True
