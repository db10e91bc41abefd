"""Atomic replacement of an installed binary.

Swapping procedure:

1. Move the old binary into the scratch directory (``BACKED_UP``).
2. Move the new binary into the now vacant target path (``SWAPPED``).
3. If step 2 fails, move the old binary back (``ROLLED_BACK``). If that
   fails too the target may be missing (``DOUBLE_FAILURE``) and the backup
   must be restored by hand.

Only ``os.rename`` is used. The scratch directory has to live on the same
filesystem as the target, otherwise the rename fails rather than silently
degrading into copy-and-delete.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

from binswap.errors import BackupError, DoubleFailureError, InstallError
from binswap.logging import get_logger
from binswap.models import SwapState, SwapTransaction

log = get_logger("binswap.swap")

Rename = Callable[[Path, Path], None]


def _rename(src: Path, dst: Path) -> None:
    os.rename(src, dst)


class SwapEngine:
    """Runs the backup/install/rollback state machine for one transaction."""

    def __init__(self, rename: Rename | None = None) -> None:
        self._rename = rename or _rename

    def swap(self, txn: SwapTransaction) -> SwapState:
        if txn.state is not SwapState.INITIAL:
            raise ValueError(f"swap transaction already in state {txn.state.value}")

        if txn.dry_run:
            log.info("binswap_swap_dry_run", target=str(txn.target_path))
            txn.state = SwapState.SWAPPED
            return txn.state

        try:
            self._rename(txn.target_path, txn.backup_path)
        except OSError as exc:
            txn.state = SwapState.FAILED_BACKUP
            log.error("binswap_backup_failed", target=str(txn.target_path), error=str(exc))
            raise BackupError(
                f"failed to back up existing binary {txn.target_path}: {exc}"
            ) from exc
        txn.state = SwapState.BACKED_UP

        try:
            self._rename(txn.candidate_path, txn.target_path)
        except OSError as install_exc:
            log.warning(
                "binswap_install_failed",
                target=str(txn.target_path),
                error=str(install_exc),
            )
            self._rollback(txn, install_exc)
            raise InstallError(
                f"failed to put new binary into {txn.target_path}: {install_exc}; "
                "the original binary was restored"
            ) from install_exc

        txn.state = SwapState.SWAPPED
        log.info("binswap_swapped", target=str(txn.target_path))
        return txn.state

    def _rollback(self, txn: SwapTransaction, install_exc: OSError) -> None:
        try:
            self._rename(txn.backup_path, txn.target_path)
        except OSError as rollback_exc:
            txn.state = SwapState.DOUBLE_FAILURE
            log.critical(
                "binswap_rollback_failed",
                target=str(txn.target_path),
                backup=str(txn.backup_path),
                install_error=str(install_exc),
                rollback_error=str(rollback_exc),
            )
            raise DoubleFailureError(
                txn.target_path, txn.backup_path, install_exc, rollback_exc
            ) from rollback_exc
        txn.state = SwapState.ROLLED_BACK
        log.info("binswap_rolled_back", target=str(txn.target_path))
