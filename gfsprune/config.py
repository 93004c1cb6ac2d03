"""
Environment-driven settings for gfsprune.

Every setting can be overridden on the command line; the environment only
supplies defaults. Invalid values are logged and replaced by the built-in
default rather than failing the run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from gfsprune.cleanup import DateSource
from gfsprune.retention.policy import DEFAULT_POLICY, RetentionPolicy

ENV_PREFIX = "GFSPRUNE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring {ENV_PREFIX}{name}={raw!r}: not an integer, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring {ENV_PREFIX}{name}={raw!r}: not a boolean, using {default}")
    return default


@dataclass
class Settings:
    """
    Defaults for a cleanup run.

    Attributes:
        policy: Retention windows
        source_dir: Directory scanned for backup files
        pattern: Regular expression file names must match
        date_source: Where file timestamps come from
        prefer_newest: Whether newer files claim shared buckets first
    """

    policy: RetentionPolicy = DEFAULT_POLICY
    source_dir: Path = field(default_factory=Path.cwd)
    pattern: str = ".*"
    date_source: DateSource = DateSource.LAST_WRITE_TIME
    prefer_newest: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``GFSPRUNE_*`` environment variables."""
        policy = RetentionPolicy(
            monthly=_env_int("MONTHLY_DAYS", DEFAULT_POLICY.monthly),
            weekly=_env_int("WEEKLY_DAYS", DEFAULT_POLICY.weekly),
            daily=_env_int("DAILY_DAYS", DEFAULT_POLICY.daily),
            intra_daily=_env_int("INTRA_DAILY_DAYS", DEFAULT_POLICY.intra_daily),
        )

        source_dir = os.getenv(ENV_PREFIX + "SOURCE_DIR")

        raw_source = os.getenv(ENV_PREFIX + "DATE_SOURCE", DateSource.LAST_WRITE_TIME.value)
        try:
            date_source = DateSource(raw_source.strip().lower())
        except ValueError:
            logger.warning(
                f"Ignoring {ENV_PREFIX}DATE_SOURCE={raw_source!r}: "
                f"expected one of {', '.join(s.value for s in DateSource)}"
            )
            date_source = DateSource.LAST_WRITE_TIME

        return cls(
            policy=policy,
            source_dir=Path(source_dir).expanduser() if source_dir else Path.cwd(),
            pattern=os.getenv(ENV_PREFIX + "PATTERN", ".*"),
            date_source=date_source,
            prefer_newest=_env_bool("PREFER_NEWEST", False),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
