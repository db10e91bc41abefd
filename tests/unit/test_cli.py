"""Tests for binswap.cli: argument parsing and exit codes."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from binswap.cli import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_UNRECOVERABLE,
    build_parser,
    main,
    request_from_args,
    run,
)
from binswap.errors import DoubleFailureError, NotFoundError

BASE_ARGS = ["--repo-author", "BurntSushi", "--repo-name", "ripgrep", "--bin-name", "rg"]


def _mock_updater(**method_kwargs: object) -> MagicMock:
    updater = MagicMock()
    updater.fetch_and_write_to = AsyncMock(**method_kwargs)
    updater.fetch_and_write_in_place_of_current_exec = AsyncMock(**method_kwargs)
    return updater


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(BASE_ARGS)
        req = request_from_args(args)

        assert req.repo_author == "BurntSushi"
        assert req.bin_name == "rg"
        assert req.asset_name is None
        assert req.version is None
        assert req.targets is None
        assert req.check_with_cmd == "--help"
        assert req.no_confirm is False
        assert req.dry_run is False
        assert args.output is None

    def test_all_flags(self) -> None:
        args = build_parser().parse_args(
            [
                *BASE_ARGS,
                "--asset-name",
                "ripgrep",
                "--release",
                "v14.1.0",
                "--target",
                "x86_64-unknown-linux-musl",
                "--target",
                "x86_64-unknown-linux-gnu",
                "--no-confirm",
                "--check-with-cmd=--version",
                "--no-check-with-cmd",
                "--dry-run",
                "--skip-failed-targets",
                "--output",
                "./rg",
            ]
        )
        req = request_from_args(args)

        assert req.asset_name == "ripgrep"
        assert req.version == "v14.1.0"
        assert req.targets == ("x86_64-unknown-linux-musl", "x86_64-unknown-linux-gnu")
        assert req.no_confirm is True
        assert req.check_with_cmd == "--version"
        assert req.no_check_with_cmd is True
        assert req.dry_run is True
        assert req.skip_failed_targets is True
        assert args.output == "./rg"

    def test_required_arguments(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--repo-author", "a"])

    def test_empty_release_rejected(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([*BASE_ARGS, "--release", ""])
        assert "must not be empty" in capsys.readouterr().err


class TestRun:
    async def test_output_path(self) -> None:
        updater = _mock_updater()
        args = build_parser().parse_args([*BASE_ARGS, "--output", "./rg"])

        with patch("binswap.cli.Updater", return_value=updater):
            assert await run(args) == EXIT_OK

        updater.fetch_and_write_to.assert_awaited_once_with("./rg")
        updater.fetch_and_write_in_place_of_current_exec.assert_not_awaited()

    async def test_in_place_by_default(self) -> None:
        updater = _mock_updater()
        args = build_parser().parse_args(BASE_ARGS)

        with patch("binswap.cli.Updater", return_value=updater):
            assert await run(args) == EXIT_OK

        updater.fetch_and_write_in_place_of_current_exec.assert_awaited_once()

    async def test_error_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        updater = _mock_updater(side_effect=NotFoundError(["x86_64-unknown-linux-gnu"]))
        args = build_parser().parse_args(BASE_ARGS)

        with patch("binswap.cli.Updater", return_value=updater):
            assert await run(args) == EXIT_ERROR

        assert "not found" in capsys.readouterr().err

    async def test_double_failure_exit_code(self, tmp_path: Path) -> None:
        err = DoubleFailureError(
            tmp_path / "rg", tmp_path / "backup", OSError("install"), OSError("rollback")
        )
        updater = _mock_updater(side_effect=err)
        args = build_parser().parse_args(BASE_ARGS)

        with patch("binswap.cli.Updater", return_value=updater):
            assert await run(args) == EXIT_UNRECOVERABLE


class TestMain:
    def test_main_sets_up_logging(self) -> None:
        with (
            patch("binswap.cli.setup_logging") as mock_setup,
            patch("binswap.cli.run", new_callable=AsyncMock, return_value=EXIT_OK) as mock_run,
        ):
            assert main([*BASE_ARGS, "--dry-run"]) == EXIT_OK

        mock_setup.assert_called_once()
        assert mock_run.await_args.args[0].dry_run is True
