"""Tests for the gfsprune command line interface."""

import sys
from datetime import datetime, timedelta

import pytest
from loguru import logger

from gfsprune.cli import build_parser, main

# Daily window only, so a file from the last hour is kept and an old one is not
DAILY_ONLY_ARGS = ["--monthly", "-1", "--weekly", "-1", "--daily", "7", "--intra-daily", "-1"]


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures loguru sinks; put the default sink back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def backup_dir(tmp_path, make_backup):
    source = tmp_path / "backups"
    source.mkdir()
    make_backup(source, "recent.bak", datetime.now() - timedelta(hours=1))
    make_backup(source, "ancient.bak", datetime.now() - timedelta(days=400))
    return source


def test_cli_module_imports():
    """CLI module should expose main."""
    from gfsprune import cli

    assert callable(cli.main)


class TestParser:
    """Tests for argument defaults."""

    def test_defaults_match_default_policy(self):
        args = build_parser().parse_args([])

        assert (args.monthly, args.weekly, args.daily, args.intra_daily) == (99999, 45, 21, 3)
        assert args.date_source == "last_write_time"
        assert args.prefer_newest is False

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("GFSPRUNE_DAILY_DAYS", "9")
        monkeypatch.setenv("GFSPRUNE_PREFER_NEWEST", "yes")

        args = build_parser().parse_args([])

        assert args.daily == 9
        assert args.prefer_newest is True


class TestMain:
    """Tests for main()."""

    def test_dry_run(self, backup_dir, capsys):
        exit_code = main([str(backup_dir), "--dry-run", "--quiet", *DAILY_ONLY_ARGS])

        assert exit_code == 0
        assert (backup_dir / "ancient.bak").exists()
        out = capsys.readouterr().out
        assert "1 files would be deleted" in out
        assert "Dry run" in out

    def test_deletes(self, backup_dir, capsys):
        exit_code = main([str(backup_dir), "--quiet", *DAILY_ONLY_ARGS])

        assert exit_code == 0
        assert (backup_dir / "recent.bak").exists()
        assert not (backup_dir / "ancient.bak").exists()
        assert "1 files were deleted" in capsys.readouterr().out

    def test_moves_to_destination(self, backup_dir):
        exit_code = main(
            [str(backup_dir), "--destination", "old", "--quiet", *DAILY_ONLY_ARGS]
        )

        assert exit_code == 0
        assert (backup_dir / "old" / "ancient.bak").exists()

    def test_plan_lists_decisions(self, backup_dir, capsys):
        exit_code = main([str(backup_dir), "--plan", "--quiet", *DAILY_ONLY_ARGS])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "KEEP" in out and "[Daily]" in out
        assert "DROP" in out
        assert (backup_dir / "ancient.bak").exists()

    def test_missing_source_dir_fails(self, tmp_path, capsys):
        exit_code = main([str(tmp_path / "missing"), "--quiet"])

        assert exit_code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_window_fails(self, backup_dir):
        with pytest.raises(SystemExit):
            main([str(backup_dir), "--daily", "seven"])
