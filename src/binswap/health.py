"""Health check for a downloaded binary before it is trusted."""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from binswap.errors import HealthCheckError
from binswap.logging import get_logger

log = get_logger("binswap.health")


async def run_health_check(binary: Path, check_cmd: str, timeout: float = 60.0) -> None:
    """Run ``binary check_cmd`` and require a zero exit status.

    Raises ``HealthCheckError`` if the binary cannot be spawned, exits
    non-zero, or is still running after ``timeout`` seconds (it is killed).
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            str(binary),
            check_cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        log.warning("binswap_health_check_spawn_failed", binary=str(binary), error=str(exc))
        raise HealthCheckError(
            f"Could not execute `{check_cmd}` on downloaded binary: {exc}"
        ) from exc

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError as exc:
        proc.kill()
        await proc.wait()
        log.warning("binswap_health_check_timeout", binary=str(binary), timeout=timeout)
        raise HealthCheckError(
            f"`{check_cmd}` on downloaded binary did not finish within {timeout:g}s"
        ) from exc
    except BaseException:
        # Cancelled while waiting: the candidate must not outlive the check.
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
        raise

    if proc.returncode != 0:
        err = stderr.decode(errors="replace")[:500]
        log.warning(
            "binswap_health_check_failed",
            binary=str(binary),
            returncode=proc.returncode,
            stderr=err,
        )
        raise HealthCheckError(
            f"Could not execute `{check_cmd}` on downloaded binary (exit status {proc.returncode})",
            returncode=proc.returncode,
            stderr=err,
        )

    log.debug("binswap_health_check_ok", binary=str(binary))
