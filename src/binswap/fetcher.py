"""Release fetchers: locate and download the artifact for a target.

``ReleaseFetcher`` is the boundary the orchestrator depends on.
``GithubReleaseFetcher`` implements it against the GitHub releases API:
it picks the release asset whose name mentions both the asset name and the
target triple, downloads it and unpacks it into a staging directory.
"""

from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path
from typing import Any, Protocol

import httpx

from binswap.constants import ARCHIVE_SUFFIXES, WINDOWS_EXE_SUFFIX
from binswap.errors import FetchError
from binswap.http import ThrottledClient
from binswap.locator import binary_file_name, ensure_executable
from binswap.logging import get_logger
from binswap.models import ReleaseRef

log = get_logger("binswap.fetcher")

_DOWNLOAD_CHUNK = 64 * 1024


class ReleaseFetcher(Protocol):
    """Finds and downloads release artifacts for one target at a time."""

    async def find(self, release: ReleaseRef, target: str) -> bool:
        """Return True if ``release`` has an artifact for ``target``."""
        ...

    async def fetch_and_extract(self, target: str, destination: Path) -> None:
        """Download the artifact found for ``target`` and unpack it into ``destination``."""
        ...


def archive_suffix(name: str) -> str | None:
    """Return the archive suffix of an asset name, or None for other files."""
    lowered = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lowered.endswith(suffix):
            return suffix
    return None


def is_bare_binary(name: str, target: str) -> bool:
    """True for uncompressed binaries named like ``tool-<target>[.exe]``."""
    lowered = name.lower()
    target = target.lower()
    return lowered.endswith(target) or lowered.endswith(target + WINDOWS_EXE_SUFFIX)


def select_asset(
    assets: list[dict[str, Any]], asset_name: str, target: str
) -> dict[str, Any] | None:
    """Pick the first asset mentioning both names; archives before bare binaries."""
    wanted_name = asset_name.lower()
    wanted_target = target.lower()

    bare: dict[str, Any] | None = None
    for asset in assets:
        name = str(asset.get("name", ""))
        lowered = name.lower()
        if wanted_name not in lowered or wanted_target not in lowered:
            continue
        if archive_suffix(name) is not None:
            return asset
        if bare is None and is_bare_binary(name, target):
            bare = asset
    return bare


def _safe_extract_zip(zf: zipfile.ZipFile, dest_dir: Path) -> None:
    root = dest_dir.resolve()
    for info in zf.infolist():
        member_path = (root / info.filename).resolve()
        if not member_path.is_relative_to(root):
            raise FetchError(f"Refusing to extract '{info.filename}': path traversal detected")

    for info in zf.infolist():
        extracted = Path(zf.extract(info, root))
        mode = info.external_attr >> 16
        if mode and not info.is_dir():
            extracted.chmod(mode & 0o777)


def extract_archive(archive: Path, suffix: str, dest_dir: Path) -> None:
    """Unpack a tar or zip archive into ``dest_dir``."""
    if suffix == ".zip":
        with zipfile.ZipFile(archive) as zf:
            _safe_extract_zip(zf, dest_dir)
        return
    with tarfile.open(archive, "r:*") as tf:
        tf.extractall(dest_dir, filter="data")


class GithubReleaseFetcher:
    """``ReleaseFetcher`` backed by the GitHub releases API."""

    def __init__(self, client: ThrottledClient, api_url: str = "https://api.github.com") -> None:
        self._client = client
        self._api_url = api_url.rstrip("/")
        self._release: ReleaseRef | None = None
        self._release_data: dict[str, Any] | None = None
        self._assets: dict[str, dict[str, Any]] = {}

    async def _get_json(self, url: str) -> dict[str, Any] | None:
        try:
            resp = await self._client.get(url, headers={"Accept": "application/vnd.github+json"})
        except httpx.HTTPError as exc:
            raise FetchError(f"request to {url} failed: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise FetchError(
                f"request to {url} returned HTTP {resp.status_code}: {resp.text[:500]}"
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise FetchError(f"invalid JSON from {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise FetchError(f"unexpected response from {url}: {resp.text[:500]}")
        return data

    async def _load_release(self, release: ReleaseRef) -> dict[str, Any] | None:
        if self._release == release:
            return self._release_data

        base = f"{self._api_url}/repos/{release.repo_author}/{release.repo_name}/releases/tags"
        data = None
        for tag in (f"v{release.version}", release.version):
            data = await self._get_json(f"{base}/{tag}")
            if data is not None:
                break

        self._release = release
        self._release_data = data
        self._assets.clear()
        if data is None:
            log.info("binswap_release_not_found", repo=release.repo_url, version=release.version)
        return data

    async def find(self, release: ReleaseRef, target: str) -> bool:
        data = await self._load_release(release)
        if data is None:
            return False

        assets = data.get("assets") or []
        asset = select_asset(list(assets), release.asset_name, target)
        if asset is None:
            log.debug("binswap_no_asset_for_target", target=target, asset_name=release.asset_name)
            return False

        self._assets[target] = asset
        log.debug("binswap_asset_selected", target=target, asset=asset.get("name"))
        return True

    async def fetch_and_extract(self, target: str, destination: Path) -> None:
        asset = self._assets.get(target)
        if asset is None or self._release is None:
            raise FetchError(f"no artifact selected for target {target}", target=target)

        name = str(asset.get("name", ""))
        url = asset.get("browser_download_url")
        if not url:
            raise FetchError(f"asset {name} has no download URL", target=target)

        destination.mkdir(parents=True, exist_ok=True)
        suffix = archive_suffix(name)
        download = destination / (f".download{suffix}" if suffix else ".download")

        try:
            async with self._client.stream(url) as resp:
                if resp.status_code != 200:
                    raise FetchError(
                        f"download of {name} returned HTTP {resp.status_code}", target=target
                    )
                with download.open("wb") as fh:
                    async for chunk in resp.aiter_bytes(_DOWNLOAD_CHUNK):
                        fh.write(chunk)
        except httpx.HTTPError as exc:
            raise FetchError(f"download of {name} failed: {exc}", target=target) from exc

        try:
            if suffix is None:
                bin_name = self._release.bin_name or self._release.asset_name
                installed = destination / binary_file_name(bin_name, target)
                download.replace(installed)
                ensure_executable(installed)
            else:
                extract_archive(download, suffix, destination)
                download.unlink()
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as exc:
            raise FetchError(f"failed to extract {name}: {exc}", target=target) from exc

        log.info("binswap_artifact_extracted", target=target, asset=name)
