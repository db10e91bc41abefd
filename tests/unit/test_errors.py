"""Tests for binswap.errors: messages and recoverability."""

from __future__ import annotations

from pathlib import Path

import pytest

from binswap.errors import (
    BackupError,
    BinswapError,
    DoubleFailureError,
    FetchError,
    HealthCheckError,
    InstallError,
    NotFoundError,
    SwapError,
    VersionResolutionError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [VersionResolutionError, NotFoundError, FetchError, HealthCheckError, SwapError],
    )
    def test_all_errors_are_binswap_errors(self, cls: type[Exception]) -> None:
        assert issubclass(cls, BinswapError)

    def test_swap_errors(self) -> None:
        assert issubclass(BackupError, SwapError)
        assert issubclass(InstallError, SwapError)
        assert issubclass(DoubleFailureError, SwapError)

    def test_only_double_failure_is_unrecoverable(self) -> None:
        assert InstallError("x").recoverable is True
        assert DoubleFailureError.recoverable is False


class TestMessages:
    def test_version_error_includes_body(self) -> None:
        err = VersionResolutionError("bad json", body='{"oops": 1}')
        assert str(err) == 'bad json; received: {"oops": 1}'
        assert err.body == '{"oops": 1}'

    def test_version_error_without_body(self) -> None:
        assert str(VersionResolutionError("timeout")) == "timeout"

    def test_not_found_lists_targets(self) -> None:
        err = NotFoundError(["a", "b"])
        assert err.targets == ("a", "b")
        assert "a, b" in str(err)

    def test_not_found_without_targets(self) -> None:
        assert "none" in str(NotFoundError([]))

    def test_double_failure_names_backup(self, tmp_path: Path) -> None:
        err = DoubleFailureError(
            tmp_path / "rg",
            tmp_path / "scratch" / "backup-binary",
            OSError("busy"),
            OSError("gone"),
        )
        text = str(err)
        assert "busy" in text
        assert "gone" in text
        assert str(tmp_path / "scratch" / "backup-binary") in text
        assert "manually" in text
