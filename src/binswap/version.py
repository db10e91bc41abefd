"""Resolve which release version to install."""

from __future__ import annotations

import json

import httpx

from binswap.errors import VersionResolutionError
from binswap.http import ThrottledClient
from binswap.logging import get_logger

log = get_logger("binswap.version")


def normalize_version(tag: str) -> str:
    """Strip surrounding whitespace and one leading ``v`` from a release tag."""
    tag = tag.strip()
    return tag[1:] if tag.startswith("v") else tag


class VersionResolver:
    """Turns an optional explicit version into a concrete version string.

    When no version is given, the repository's latest release is queried
    once and its ``tag_name`` is used.
    """

    def __init__(
        self,
        client: ThrottledClient,
        repo_author: str,
        repo_name: str,
        api_url: str = "https://api.github.com",
    ) -> None:
        self._client = client
        self._repo_author = repo_author
        self._repo_name = repo_name
        self._api_url = api_url.rstrip("/")

    @property
    def latest_release_url(self) -> str:
        return f"{self._api_url}/repos/{self._repo_author}/{self._repo_name}/releases/latest"

    async def resolve(self, explicit: str | None = None) -> str:
        if explicit is not None:
            version = normalize_version(explicit)
            if not version:
                raise VersionResolutionError(f"invalid version {explicit!r}")
            return version
        return await self.fetch_latest()

    async def fetch_latest(self) -> str:
        url = self.latest_release_url
        try:
            resp = await self._client.get(
                url, headers={"Accept": "application/vnd.github+json"}
            )
        except httpx.HTTPError as exc:
            log.warning("binswap_latest_release_request_failed", url=url, error=str(exc))
            raise VersionResolutionError(f"request for latest release failed: {exc}") from exc

        body = resp.text
        if resp.status_code != 200:
            log.warning("binswap_latest_release_bad_status", url=url, status=resp.status_code)
            raise VersionResolutionError(
                f"latest release lookup returned HTTP {resp.status_code}", body=body
            )

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise VersionResolutionError(
                f"invalid JSON in latest release: {exc}", body=body
            ) from exc

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag:
            raise VersionResolutionError("latest release has no `tag_name`", body=body)

        version = normalize_version(tag)
        log.debug("binswap_latest_release", tag=tag, version=version)
        return version
