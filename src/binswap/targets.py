"""Target platform enumeration.

Targets are Rust-style triples such as ``x86_64-unknown-linux-gnu``, the
naming most GitHub release assets for command-line tools follow. Order is
priority: the first target with a usable artifact wins.
"""

from __future__ import annotations

import platform
from typing import Protocol

from binswap.logging import get_logger
from binswap.models import UpdateRequest

log = get_logger("binswap.targets")

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "armv7",
    "armv7": "armv7",
    "i686": "i686",
    "i386": "i686",
    "x86": "i686",
}


class TargetDetector(Protocol):
    """Produces an ordered list of target identifiers for this machine."""

    def detect(self) -> list[str]: ...


def is_windows_target(target: str) -> bool:
    return "windows" in target.lower()


class PlatformDetector:
    """Detects targets for the local machine, most specific first."""

    def __init__(
        self,
        system: str | None = None,
        machine: str | None = None,
        libc: str | None = None,
    ) -> None:
        self.system = (system if system is not None else platform.system()).lower()
        self.machine = (machine if machine is not None else platform.machine()).lower()
        self._libc = libc

    @property
    def libc(self) -> str:
        if self._libc is None:
            name, _ = platform.libc_ver()
            self._libc = "gnu" if name == "glibc" else "musl"
        return self._libc

    def detect(self) -> list[str]:
        arch = _ARCH_ALIASES.get(self.machine)
        if arch is None:
            log.warning("binswap_unknown_architecture", machine=self.machine)
            return []

        if self.system == "linux":
            if arch == "armv7":
                return ["armv7-unknown-linux-gnueabihf", "armv7-unknown-linux-musleabihf"]
            # musl builds are static, so they also run on glibc systems
            if self.libc == "gnu":
                return [f"{arch}-unknown-linux-gnu", f"{arch}-unknown-linux-musl"]
            return [f"{arch}-unknown-linux-musl"]

        if self.system == "darwin":
            if arch == "aarch64":
                # Rosetta runs x86_64 binaries on Apple silicon
                return ["aarch64-apple-darwin", "x86_64-apple-darwin"]
            return [f"{arch}-apple-darwin"]

        if self.system == "windows":
            targets = [f"{arch}-pc-windows-msvc", f"{arch}-pc-windows-gnu"]
            if arch == "x86_64":
                targets.append("i686-pc-windows-msvc")
            return targets

        if self.system == "freebsd":
            return [f"{arch}-unknown-freebsd"]

        log.warning("binswap_unknown_system", system=self.system)
        return []


def enumerate_targets(request: UpdateRequest, detector: TargetDetector) -> list[str]:
    """Return the request's explicit targets, or the detector's ordered list."""
    if request.targets is not None:
        return list(request.targets)
    return list(detector.detect())
