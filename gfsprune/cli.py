"""
Command line interface for gfsprune.

Usage:
    gfsprune /var/backups/db --pattern '^db_(\\d{8})' --date-source filename --dry-run
    python -m gfsprune /var/backups/db --destination old --weekly 60
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from gfsprune.cleanup import CleanupJob, CleanupOptions, DateSource
from gfsprune.config import get_settings
from gfsprune.retention.policy import OrderingPreference, RetentionPolicy


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser, with defaults taken from the environment."""
    settings = get_settings()
    policy = settings.policy

    parser = argparse.ArgumentParser(
        prog="gfsprune",
        description="Prune backup files with a grandfather-father-son retention policy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Preview what would be removed:
    gfsprune /var/backups --dry-run

  Show every file with its retention reasons:
    gfsprune /var/backups --plan

  Date files by name and move discarded ones into ./old:
    gfsprune /var/backups --pattern '^db_(\\d{8})_\\d{6}' --date-source filename --destination old

  Keep one backup per day for 30 days, everything from the last 2 days:
    gfsprune /var/backups --daily 30 --intra-daily 2
""",
    )

    parser.add_argument(
        "source_dir",
        nargs="?",
        default=str(settings.source_dir),
        help=f"Directory containing backup files (default: {settings.source_dir})",
    )
    parser.add_argument(
        "--pattern",
        default=settings.pattern,
        help=f"Regular expression file names must match (default: {settings.pattern})",
    )
    parser.add_argument(
        "--min-size",
        type=int,
        default=0,
        metavar="BYTES",
        help="Ignore files smaller than BYTES (default: 0)",
    )
    parser.add_argument(
        "--date-source",
        choices=[source.value for source in DateSource],
        default=settings.date_source.value,
        help=f"Where file dates come from (default: {settings.date_source.value})",
    )
    parser.add_argument(
        "--date-format",
        metavar="FORMAT",
        help="strptime format of the date captured from file names",
    )
    parser.add_argument(
        "--destination",
        metavar="DIR",
        help="Move discarded files to DIR instead of deleting them "
        "(relative paths are resolved against the source directory)",
    )

    # Retention windows
    parser.add_argument(
        "--monthly",
        type=int,
        default=policy.monthly,
        metavar="DAYS",
        help=f"Keep the first backup of each month for DAYS days (default: {policy.monthly})",
    )
    parser.add_argument(
        "--weekly",
        type=int,
        default=policy.weekly,
        metavar="DAYS",
        help=f"Keep the first backup of each ISO week for DAYS days (default: {policy.weekly})",
    )
    parser.add_argument(
        "--daily",
        type=int,
        default=policy.daily,
        metavar="DAYS",
        help=f"Keep the first backup of each day for DAYS days (default: {policy.daily})",
    )
    parser.add_argument(
        "--intra-daily",
        type=int,
        default=policy.intra_daily,
        metavar="DAYS",
        help=f"Keep every backup from the last DAYS days (default: {policy.intra_daily})",
    )
    parser.add_argument(
        "--prefer-newest",
        action="store_true",
        default=settings.prefer_newest,
        help="Let the newest backup in a month/week/day claim it (default: oldest)",
    )

    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Include files in subdirectories",
    )
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Report what would be done without changing anything",
    )
    parser.add_argument(
        "--plan",
        action="store_true",
        help="Print every file with its decision and reasons (implies --dry-run)",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output except errors",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every retention decision",
    )
    return parser


def _print_plan(job: CleanupJob) -> None:
    classifications = job.plan()
    if not classifications:
        print("No matching backup files found")
        return

    for candidate, decision in classifications:
        verdict = "KEEP" if decision.retain else "DROP"
        reasons = ", ".join(decision.reason_labels) or "-"
        print(f"{verdict}  {candidate.timestamp:%Y-%m-%d %H:%M:%S}  {candidate.identifier}  [{reasons}]")


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point for backup pruning.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    if args.quiet:
        logger.remove()
        logger.add(sys.stderr, level="ERROR")
    elif args.verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")

    try:
        policy = RetentionPolicy(
            monthly=args.monthly,
            weekly=args.weekly,
            daily=args.daily,
            intra_daily=args.intra_daily,
        )
        options = CleanupOptions(
            source_dir=Path(args.source_dir),
            pattern=args.pattern,
            min_size=args.min_size,
            date_source=DateSource(args.date_source),
            date_format=args.date_format,
            destination=Path(args.destination) if args.destination else None,
            ordering=(
                OrderingPreference.PREFER_NEWEST
                if args.prefer_newest
                else OrderingPreference.PREFER_OLDEST
            ),
            recursive=args.recursive,
            dry_run=args.dry_run or args.plan,
        )
        job = CleanupJob(options, policy)

        if args.plan:
            _print_plan(job)
            return 0

        result = job.run()

        verb = "would be" if result.dry_run else "were"
        print(f"Scanned {result.scanned} files, retained {result.retained}")
        if options.destination is not None:
            print(f"{result.moved} files {verb} moved to {options.destination}")
        else:
            print(f"{result.deleted} files {verb} deleted")
        if result.skipped:
            print(f"{len(result.skipped)} files skipped (no usable date)")
        if result.dry_run:
            print("Dry run: no files were changed")

        if not result.success:
            for error in result.errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1
        return 0

    except Exception as e:
        logger.error(f"Cleanup failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
