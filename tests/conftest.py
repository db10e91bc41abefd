"""Shared fixtures for binswap tests."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from binswap.config import Settings
from binswap.errors import FetchError
from binswap.models import ReleaseRef

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses shell script binaries")


def write_script(path: Path, body: str = "exit 0") -> Path:
    """Write an executable POSIX shell script to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class StubFetcher:
    """In-memory ``ReleaseFetcher``.

    ``artifacts`` maps a target to the files (relative path -> text) its
    artifact extracts to. ``find_errors``/``fetch_errors`` name targets whose
    calls raise ``FetchError``.
    """

    def __init__(
        self,
        artifacts: dict[str, dict[str, str]] | None = None,
        find_errors: set[str] | None = None,
        fetch_errors: set[str] | None = None,
    ) -> None:
        self.artifacts = artifacts or {}
        self.find_errors = find_errors or set()
        self.fetch_errors = fetch_errors or set()
        self.found: list[tuple[ReleaseRef, str]] = []
        self.fetched: list[str] = []
        self.destinations: list[Path] = []

    async def find(self, release: ReleaseRef, target: str) -> bool:
        self.found.append((release, target))
        if target in self.find_errors:
            raise FetchError(f"lookup for {target} failed", target=target)
        return target in self.artifacts

    async def fetch_and_extract(self, target: str, destination: Path) -> None:
        self.fetched.append(target)
        self.destinations.append(destination)
        if target in self.fetch_errors:
            raise FetchError(f"download for {target} failed", target=target)
        for rel, body in self.artifacts[target].items():
            write_script(destination / rel, body)


class StubResolver:
    def __init__(self, latest: str = "13.0.0") -> None:
        self.latest = latest
        self.calls: list[str | None] = []

    async def resolve(self, explicit: str | None = None) -> str:
        self.calls.append(explicit)
        return explicit.lstrip("v") if explicit is not None else self.latest


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, health_check_timeout_seconds=10)


@pytest.fixture
def installed(tmp_path: Path) -> Path:
    """An installed binary that the tests replace."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return write_script(bin_dir / "tool", "echo old-version")


@pytest.fixture(autouse=True)
def _clean_binswap_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.upper().startswith("BINSWAP_"):
            monkeypatch.delenv(key, raising=False)
