"""
Backup file cleanup driven by the retention classifier.

Scans a directory for backup files, dates each one, classifies the set
against a RetentionPolicy and then deletes the files that were not retained
or moves them to a destination directory. Dry-run mode reports the same
actions without touching the filesystem.

Usage:
    from gfsprune.cleanup import CleanupJob, CleanupOptions, DateSource

    options = CleanupOptions(
        source_dir=Path("/var/backups/db"),
        pattern=r"^db_(\\d{8})_\\d{6}\\.sql\\.gz$",
        date_source=DateSource.FILENAME,
        dry_run=True,
    )
    result = CleanupJob(options, policy).run()
"""

from __future__ import annotations

import os
import re
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from gfsprune.retention.classifier import Candidate, Classification, classify, summarize
from gfsprune.retention.policy import DEFAULT_POLICY, OrderingPreference, RetentionPolicy

# Timestamp layouts tried, in order, when no explicit date format is given
FILENAME_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y%m%d",
    "%Y%m%d_%H%M%S",
    "%Y%m%d-%H%M%S",
    "%Y%m%dT%H%M%S",
    "%Y-%m-%d_%H-%M-%S",
    "%Y-%m-%d_%H%M%S",
)


class CleanupError(Exception):
    """Raised when a cleanup run is misconfigured and cannot start."""
    pass


class DateSource(Enum):
    """Where a file's retention timestamp is taken from."""

    FILENAME = "filename"  # first capture group of the name pattern
    CREATION_TIME = "creation_time"
    LAST_WRITE_TIME = "last_write_time"


@dataclass
class CleanupOptions:
    """
    What to scan and what to do with files that are not retained.

    Attributes:
        source_dir: Directory containing the backup files
        pattern: Regular expression file names must match (re.search)
        min_size: Files smaller than this many bytes are ignored
        date_source: Where file timestamps come from
        date_format: strptime format for the filename capture (optional)
        destination: Move discarded files here instead of deleting them.
            A relative path is resolved against source_dir.
        ordering: Which end of the timeline claims shared buckets first
        recursive: Descend into subdirectories of source_dir
        dry_run: Report actions without performing them
    """

    source_dir: Path
    pattern: str = ".*"
    min_size: int = 0
    date_source: DateSource = DateSource.LAST_WRITE_TIME
    date_format: str | None = None
    destination: Path | None = None
    ordering: OrderingPreference = OrderingPreference.PREFER_OLDEST
    recursive: bool = False
    dry_run: bool = False

    def __post_init__(self) -> None:
        self.source_dir = Path(self.source_dir).expanduser()
        if self.destination is not None:
            self.destination = resolve_destination(self.source_dir, self.destination)


@dataclass
class CleanupResult:
    """
    Result of a cleanup run.

    Attributes:
        dry_run: Whether this was a dry run
        scanned: Number of files classified
        retained: Number of files kept
        deleted: Number of files deleted (or that would be)
        moved: Number of files moved (or that would be)
        skipped: Files excluded because no timestamp could be derived
        bytes_freed: Bytes removed from the source directory
        duration_seconds: Time taken for the run
        errors: Error messages for failed file operations
        decisions: Per-file decision records, in processing order
    """

    dry_run: bool
    scanned: int = 0
    retained: int = 0
    deleted: int = 0
    moved: int = 0
    skipped: list[str] = field(default_factory=list)
    bytes_freed: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)
    decisions: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if every file operation succeeded."""
        return len(self.errors) == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "dry_run": self.dry_run,
            "scanned": self.scanned,
            "retained": self.retained,
            "deleted": self.deleted,
            "moved": self.moved,
            "skipped": self.skipped,
            "bytes_freed": self.bytes_freed,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
            "decisions": self.decisions,
        }


def resolve_destination(source_dir: Path, destination: Path | str) -> Path:
    """Resolve a destination directory, treating relative paths as relative to source_dir."""
    destination = Path(destination).expanduser()
    if not destination.is_absolute():
        destination = Path(source_dir) / destination
    return destination


def parse_filename_date(value: str, date_format: str | None = None) -> datetime:
    """
    Parse the date captured from a file name.

    Args:
        value: Captured text, e.g. "20240304" or "2024-03-04_21-30-00"
        date_format: Explicit strptime format; when omitted the common
            backup stamp layouts and ISO 8601 are tried

    Returns:
        Parsed datetime

    Raises:
        ValueError: If the text does not parse as a date
    """
    if date_format:
        return datetime.strptime(value, date_format)

    for fmt in FILENAME_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    return datetime.fromisoformat(value)


def _creation_time(stat: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD and Windows; st_ctime is the closest elsewhere
    return getattr(stat, "st_birthtime", stat.st_ctime)


def _iter_files(options: CleanupOptions):
    entries = options.source_dir.rglob("*") if options.recursive else options.source_dir.iterdir()
    destination = options.destination.resolve() if options.destination else None

    for path in sorted(entries):
        if destination is not None and (
            path.resolve() == destination or destination in path.resolve().parents
        ):
            continue
        if path.is_file():
            yield path


def scan_candidates(options: CleanupOptions) -> tuple[list[Candidate], list[str]]:
    """
    Find backup files and derive a timestamp for each.

    Files smaller than ``min_size`` or whose name does not match ``pattern``
    are ignored. With DateSource.FILENAME a file whose name yields no
    parsable date is skipped with a warning; it never aborts the scan.

    Args:
        options: Cleanup options

    Returns:
        Tuple of (candidates, skipped file paths)

    Raises:
        CleanupError: If the source directory is missing or the pattern is
            invalid (or has no capture group while dating by file name)
    """
    if not options.source_dir.is_dir():
        raise CleanupError(f"Source directory does not exist: {options.source_dir}")

    try:
        regex = re.compile(options.pattern)
    except re.error as e:
        raise CleanupError(f"Invalid file name pattern {options.pattern!r}: {e}") from e

    if options.date_source == DateSource.FILENAME and regex.groups < 1:
        raise CleanupError(
            f"Pattern {options.pattern!r} needs a capture group to date files by name"
        )

    candidates = []
    skipped = []

    for path in _iter_files(options):
        match = regex.search(path.name)
        if match is None:
            continue

        try:
            stat = path.stat()
        except OSError as e:
            logger.warning(f"Skipping {path}: cannot stat file: {e}")
            skipped.append(str(path))
            continue

        if stat.st_size < options.min_size:
            logger.debug(f"Ignoring {path}: {stat.st_size} bytes < {options.min_size}")
            continue

        if options.date_source == DateSource.FILENAME:
            captured = match.group(1)
            if captured is None:
                logger.warning(f"Skipping {path}: pattern captured no date")
                skipped.append(str(path))
                continue
            try:
                timestamp = parse_filename_date(captured, options.date_format)
            except ValueError:
                logger.warning(f"Skipping {path}: could not parse date from {captured!r}")
                skipped.append(str(path))
                continue
        elif options.date_source == DateSource.CREATION_TIME:
            timestamp = datetime.fromtimestamp(_creation_time(stat))
        else:
            timestamp = datetime.fromtimestamp(stat.st_mtime)

        candidates.append(Candidate(identifier=path, timestamp=timestamp))

    logger.info(
        f"Scanned {options.source_dir}: {len(candidates)} candidates, {len(skipped)} skipped"
    )
    return candidates, skipped


class CleanupJob:
    """
    Cleanup run over one source directory.

    Classifies every matching file and deletes (or moves) the ones the
    classifier did not retain. File operation failures are recorded in the
    result and do not stop the remaining files from being processed.
    """

    def __init__(
        self,
        options: CleanupOptions,
        policy: RetentionPolicy = DEFAULT_POLICY,
    ):
        """
        Initialize the cleanup job.

        Args:
            options: What to scan and how to dispose of discarded files
            policy: Retention windows
        """
        self._options = options
        self._policy = policy

    @property
    def options(self) -> CleanupOptions:
        return self._options

    @property
    def policy(self) -> RetentionPolicy:
        return self._policy

    def plan(self, now: datetime | None = None) -> list[Classification]:
        """Scan and classify without acting on anything."""
        candidates, _ = scan_candidates(self._options)
        return classify(self._policy, self._options.ordering, candidates, now=now)

    def run(self, now: datetime | None = None) -> CleanupResult:
        """
        Run the cleanup.

        Args:
            now: Reference instant for the retention windows (defaults to now)

        Returns:
            CleanupResult describing what was (or would be) done
        """
        start_time = time.perf_counter()
        options = self._options
        result = CleanupResult(dry_run=options.dry_run)

        action = "move" if options.destination is not None else "delete"
        logger.info(
            f"Running cleanup of {options.source_dir} "
            f"(dry_run={options.dry_run}, action={action}, policy={self._policy.to_dict()})"
        )

        candidates, result.skipped = scan_candidates(options)
        classifications = classify(self._policy, options.ordering, candidates, now=now)
        result.scanned = len(classifications)

        for candidate, decision in classifications:
            path: Path = candidate.identifier
            record = {
                "path": str(path),
                "timestamp": candidate.timestamp.isoformat(),
                "retain": decision.retain,
                "reasons": decision.reason_labels,
                "action": "keep" if decision.retain else action,
            }
            result.decisions.append(record)

            if decision.retain:
                result.retained += 1
                continue

            if options.destination is not None:
                self._move(path, result)
            else:
                self._delete(path, result)

        summary = summarize(classifications)
        result.duration_seconds = time.perf_counter() - start_time
        logger.info(
            f"Cleanup complete: scanned={result.scanned}, retained={result.retained}, "
            f"deleted={result.deleted}, moved={result.moved}, "
            f"skipped={len(result.skipped)}, errors={len(result.errors)}, "
            f"reasons={summary['reasons']}"
        )
        return result

    def _delete(self, path: Path, result: CleanupResult) -> None:
        size = self._size_of(path)

        if self._options.dry_run:
            logger.info(f"Would delete {path}")
            result.deleted += 1
            result.bytes_freed += size
            return

        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            result.errors.append(f"delete {path}: {e}")
            return

        result.deleted += 1
        result.bytes_freed += size
        logger.info(f"Deleted {path}")

    def _move(self, path: Path, result: CleanupResult) -> None:
        options = self._options
        if options.recursive:
            target = options.destination / path.relative_to(options.source_dir)
        else:
            target = options.destination / path.name
        size = self._size_of(path)

        if target.exists():
            logger.error(f"Cannot move {path}: {target} already exists")
            result.errors.append(f"move {path}: {target} already exists")
            return

        if options.dry_run:
            logger.info(f"Would move {path} -> {target}")
            result.moved += 1
            result.bytes_freed += size
            return

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(path), str(target))
        except OSError as e:
            logger.error(f"Failed to move {path} -> {target}: {e}")
            result.errors.append(f"move {path}: {e}")
            return

        result.moved += 1
        result.bytes_freed += size
        logger.info(f"Moved {path} -> {target}")

    @staticmethod
    def _size_of(path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError:
            return 0
