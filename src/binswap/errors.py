"""Exception hierarchy for binswap.

Every failure of an update attempt surfaces as a ``BinswapError`` subclass.
A user declining the confirmation prompt is not an error; see
``UpdateStatus.DECLINED``.
"""

from __future__ import annotations

from pathlib import Path


class BinswapError(Exception):
    """Base class for all update failures."""

    recoverable = True


class VersionResolutionError(BinswapError):
    """The latest release version could not be determined."""

    def __init__(self, message: str, body: str = "") -> None:
        self.body = body
        if body:
            message = f"{message}; received: {body}"
        super().__init__(message)


class NotFoundError(BinswapError):
    """No target yielded a release artifact containing the binary."""

    def __init__(self, targets: list[str] | tuple[str, ...]) -> None:
        self.targets = tuple(targets)
        tried = ", ".join(self.targets) if self.targets else "none"
        super().__init__(f"not found (targets tried: {tried})")


class FetchError(BinswapError):
    """The release fetcher failed while looking up or downloading an artifact."""

    def __init__(self, message: str, target: str | None = None) -> None:
        self.target = target
        super().__init__(message)


class HealthCheckError(BinswapError):
    """The downloaded binary did not run its check command cleanly."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class SwapError(BinswapError):
    """Base class for failures while replacing the installed binary."""


class BackupError(SwapError):
    """The existing binary could not be moved aside; nothing was changed."""


class InstallError(SwapError):
    """The new binary could not be moved into place; the original was restored."""


class DoubleFailureError(SwapError):
    """Installing failed and restoring the original failed as well.

    The target path may now be missing. The original binary is left at
    ``backup_path`` and has to be moved back by hand.
    """

    recoverable = False

    def __init__(
        self,
        target_path: Path,
        backup_path: Path,
        install_error: BaseException,
        rollback_error: BaseException,
    ) -> None:
        self.target_path = target_path
        self.backup_path = backup_path
        self.install_error = install_error
        self.rollback_error = rollback_error
        super().__init__(
            f"failed to put new binary into {target_path} ({install_error}) and "
            f"failed to move old binary back ({rollback_error}); "
            f"the original binary is kept at {backup_path} and must be restored manually"
        )
