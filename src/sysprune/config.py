"""Configuration management for sysprune."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .cleaners import Cleaner, builtin_cleaners, select_cleaners
from .errors import ConfigurationError
from .locations import Base, Fixed, LocationDescriptor, Pattern, PerUser, Platform
from .retention import RetentionPolicy
from .rules import ExtensionIn, NotifyOnly, OlderThan, Rule, Since
from .sources import AnySource, LocalGlobSource, ObjectStoreSource, VaultExportSource, VaultProvider

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret YAML booleans and common string spellings; None yields ``default``."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def _expand(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value)))


def _non_negative(data: dict[str, Any], key: str, default: int) -> int:
    if key not in data:
        return default
    try:
        value = int(data[key])
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be an integer, got {data[key]!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{key} must be non-negative, got {value}")
    return value


def _mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{what} must be a mapping, got {value!r}")
    return value


def _string_list(value: Any, what: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationError(f"{what} must be a list, got {value!r}")
    return [str(item) for item in value]


def _enum(enum_type: type, value: Any, what: str) -> Any:
    try:
        return enum_type(str(value).lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(f"Unknown {what} {value!r} (expected one of: {choices})") from exc


def parse_policy(data: dict[str, Any]) -> RetentionPolicy:
    """Build a RetentionPolicy from the ``retention`` mapping."""
    defaults = RetentionPolicy()
    return RetentionPolicy(
        enabled=parse_bool(data.get("enabled"), defaults.enabled),
        max_age_days=_non_negative(data, "max_age_days", defaults.max_age_days),
        weekly_keep=_non_negative(data, "weekly_keep", defaults.weekly_keep),
        monthly_keep=_non_negative(data, "monthly_keep", defaults.monthly_keep),
        min_keep_count=_non_negative(data, "min_keep_count", defaults.min_keep_count),
    )


def parse_location(data: dict[str, Any], platform: Platform | None) -> LocationDescriptor:
    """Build one location descriptor; globs are validated here, not at run time."""
    data = _mapping(data, "Location")
    if "platform" in data:
        platform = _enum(Platform, data["platform"], "platform")

    if "fixed" in data:
        return Fixed(_expand(str(data["fixed"])), platform=platform)

    if "per_user" in data:
        entry = data["per_user"]
        if isinstance(entry, str):
            return PerUser(entry, platform=platform)
        entry = _mapping(entry, "per_user location")
        base = _enum(Base, entry.get("base", Base.USER_PROFILES.value), "platform base")
        return PerUser(str(entry["glob"]), base=base, platform=platform)

    if "pattern" in data:
        entry = _mapping(data["pattern"], "pattern location")
        raw_base = str(entry["base"])
        if raw_base.lower() in {b.value for b in Base}:
            base = Base(raw_base.lower())
        elif any(sep in raw_base for sep in ("/", "\\", "~", "$")):
            base = _expand(raw_base)
        else:
            raise ConfigurationError(f"Unknown platform base {raw_base!r}")
        return Pattern(base, str(entry["glob"]), platform=platform)

    raise ConfigurationError(f"Location needs one of fixed/per_user/pattern: {data!r}")


def parse_rule(data: dict[str, Any]) -> Rule:
    data = _mapping(data, "Rule")
    if "older_than_days" in data:
        since = _enum(Since, data.get("since", Since.MODIFIED.value), "age reference")
        return OlderThan(_non_negative(data, "older_than_days", 0), since)
    if "extensions" in data:
        return ExtensionIn.of(_string_list(data["extensions"], "extensions"))
    if parse_bool(data.get("notify_only"), False):
        return NotifyOnly()
    raise ConfigurationError(f"Unknown rule: {data!r}")


def parse_cleaner(data: dict[str, Any]) -> Cleaner:
    """Build a custom cleaner from configuration."""
    data = _mapping(data, "Custom cleaner")
    try:
        name = str(data["name"])
    except KeyError as exc:
        raise ConfigurationError(f"Custom cleaner without a name: {data!r}") from exc

    platform = _enum(Platform, data["platform"], "platform") if "platform" in data else None
    try:
        locations = tuple(parse_location(loc, platform) for loc in data.get("locations", []))
    except KeyError as exc:
        raise ConfigurationError(f"Location of cleaner {name!r} is missing {exc.args[0]!r}") from exc
    if not locations:
        raise ConfigurationError(f"Custom cleaner {name!r} has no locations")
    rules = tuple(parse_rule(rule) for rule in data.get("rules", []))
    return Cleaner(name=name, locations=locations, rules=rules, description=str(data.get("description", "")))


def parse_source(data: dict[str, Any]) -> AnySource:
    """Build one Source from its typed mapping."""
    data = _mapping(data, "Source")
    kind = str(data.get("type", "")).lower()
    name = str(data.get("name") or kind)

    try:
        if kind == "local":
            return LocalGlobSource(name, _expand(str(data["root"])), str(data.get("pattern", "*")))
        if kind == "s3":
            return ObjectStoreSource(
                name,
                str(data["bucket"]),
                str(data.get("prefix", "")),
                region=data.get("region"),
                endpoint_url=data.get("endpoint"),
            )
        if kind == "vault":
            provider = _enum(VaultProvider, data["provider"], "vault provider")
            return VaultExportSource(name, _expand(str(data["root"])), provider, str(data["unit"]))
    except KeyError as exc:
        raise ConfigurationError(f"Source {name!r} is missing {exc.args[0]!r}") from exc

    raise ConfigurationError(f"Unknown source type {kind!r} (expected local, s3 or vault)")


@dataclass
class SysPruneConfig:
    """Configuration for sysprune."""

    retention: RetentionPolicy = field(default_factory=RetentionPolicy)

    # Cleaner selection; empty means every built-in and custom cleaner
    cleaners_enabled: list[str] = field(default_factory=list)
    cleaners_disabled: list[str] = field(default_factory=list)
    custom_cleaners: list[Cleaner] = field(default_factory=list)

    sources: list[AnySource] = field(default_factory=list)

    max_workers: int = 8

    # Watch mode: seconds without new events before a source is pruned
    debounce_seconds: float = 30.0

    # Logging
    log_file: Path = field(default_factory=lambda: Path.home() / ".local/state/sysprune/sysprune.log")
    log_level: str = "INFO"

    # Raw mappings kept for save()
    _raw_sources: list[dict[str, Any]] = field(default_factory=list, repr=False)
    _raw_cleaners: list[dict[str, Any]] = field(default_factory=list, repr=False)

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        base = os.environ.get("XDG_CONFIG_HOME")
        return (Path(base) if base else Path.home() / ".config") / "sysprune/config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> SysPruneConfig:
        """Load configuration from a YAML file; a missing file yields the defaults.

        Raises:
            ConfigurationError: If the file is not valid YAML or holds invalid values.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> SysPruneConfig:
        """Create config from dictionary."""
        config = cls()

        if "retention" in data:
            config.retention = parse_policy(_mapping(data["retention"] or {}, "retention"))

        if "cleaners" in data:
            cleaners = _mapping(data["cleaners"] or {}, "cleaners")
            config.cleaners_enabled = _string_list(cleaners.get("enabled") or [], "cleaners.enabled")
            config.cleaners_disabled = _string_list(cleaners.get("disabled") or [], "cleaners.disabled")

        if "custom_cleaners" in data:
            config._raw_cleaners = list(data["custom_cleaners"] or [])
            config.custom_cleaners = [parse_cleaner(c) for c in config._raw_cleaners]

        if "sources" in data:
            config._raw_sources = list(data["sources"] or [])
            config.sources = [parse_source(s) for s in config._raw_sources]
            names = [s.name for s in config.sources]
            if len(names) != len(set(names)):
                raise ConfigurationError("Source names must be unique")

        if "max_workers" in data:
            config.max_workers = _non_negative(data, "max_workers", config.max_workers)
            if config.max_workers < 1:
                raise ConfigurationError("max_workers must be at least 1")

        if "watch" in data:
            watch = _mapping(data["watch"] or {}, "watch")
            if "debounce_seconds" in watch:
                try:
                    config.debounce_seconds = float(watch["debounce_seconds"])
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(f"debounce_seconds must be a number: {exc}") from exc
                if config.debounce_seconds < 0:
                    raise ConfigurationError("debounce_seconds must be non-negative")

        if "logging" in data:
            logging_cfg = _mapping(data["logging"] or {}, "logging")
            if "file" in logging_cfg:
                config.log_file = _expand(str(logging_cfg["file"]))
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()

        if config.log_level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level: {config.log_level}")

        # Fail now on unknown names or duplicates instead of at run time.
        config.catalogue()
        return config

    def catalogue(self) -> list[Cleaner]:
        """The ordered cleaner catalogue filtered by the enabled/disabled selection."""
        return select_cleaners(
            [*builtin_cleaners(), *self.custom_cleaners],
            self.cleaners_enabled,
            self.cleaners_disabled,
        )

    def source(self, name: str) -> AnySource:
        for source in self.sources:
            if source.name == name:
                return source
        raise ConfigurationError(f"Unknown source: {name}")

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "retention": {
                "enabled": self.retention.enabled,
                "max_age_days": self.retention.max_age_days,
                "weekly_keep": self.retention.weekly_keep,
                "monthly_keep": self.retention.monthly_keep,
                "min_keep_count": self.retention.min_keep_count,
            },
            "cleaners": {
                "enabled": list(self.cleaners_enabled),
                "disabled": list(self.cleaners_disabled),
            },
            "custom_cleaners": list(self._raw_cleaners),
            "sources": list(self._raw_sources),
            "max_workers": self.max_workers,
            "watch": {"debounce_seconds": self.debounce_seconds},
            "logging": {
                "file": str(self.log_file),
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
