"""Find the binary inside an extracted release artifact."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from binswap.constants import WINDOWS_EXE_SUFFIX
from binswap.logging import get_logger
from binswap.targets import is_windows_target

log = get_logger("binswap.locator")


def binary_file_name(bin_name: str, target: str) -> str:
    """File name of the binary for ``target``, with ``.exe`` on Windows."""
    if is_windows_target(target) and not bin_name.lower().endswith(WINDOWS_EXE_SUFFIX):
        return bin_name + WINDOWS_EXE_SUFFIX
    return bin_name


def locate_binary(staging: Path, bin_name: str, target: str) -> Path | None:
    """Look for the binary at the staging root, then one directory down.

    Release archives either contain the binary directly or wrap it in a
    single top-level folder (``ripgrep-14.1.0-x86_64-unknown-linux-musl/rg``).
    Subdirectories are searched in listing order and the first hit wins.
    Returns None if the artifact has no such binary.
    """
    name = binary_file_name(bin_name, target)

    candidate = staging / name
    if candidate.is_file():
        return candidate

    with os.scandir(staging) as entries:
        for entry in entries:
            if not entry.is_dir():
                continue
            nested = Path(entry.path) / name
            if nested.is_file():
                return nested

    log.debug("binswap_binary_not_in_artifact", staging=str(staging), name=name)
    return None


def ensure_executable(path: Path) -> None:
    """Add execute permission wherever read permission is granted.

    Zip archives do not carry POSIX modes, so extracted binaries may come
    out non-executable.
    """
    if os.name == "nt":
        return
    mode = path.stat().st_mode
    wanted = mode | stat.S_IXUSR
    if mode & stat.S_IRGRP:
        wanted |= stat.S_IXGRP
    if mode & stat.S_IROTH:
        wanted |= stat.S_IXOTH
    if wanted != mode:
        path.chmod(wanted)
