"""Update orchestration.

Typical flow:

1. resolve the version to install (latest release unless pinned)
2. enumerate targets, most preferred first
3. per target: find the artifact, download and extract it, locate the binary
4. run the health check on the candidate
5. ask the user for confirmation
6. atomically swap the candidate with the installed binary

The first target that yields a binary is the only one used. A target
without an artifact (or whose artifact lacks the binary) moves on to the
next target; a fetch error aborts the whole update unless the request
opts into ``skip_failed_targets``.
"""

from __future__ import annotations

import shutil
import sys
import tempfile
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

import structlog

from binswap.config import Settings, get_settings
from binswap.confirm import confirm
from binswap.constants import BACKUP_FILE_NAME, SCRATCH_PREFIX, STAGING_DIR_NAME
from binswap.errors import (
    BinswapError,
    DoubleFailureError,
    FetchError,
    NotFoundError,
    SwapError,
)
from binswap.fetcher import GithubReleaseFetcher, ReleaseFetcher
from binswap.health import run_health_check
from binswap.http import ThrottledClient
from binswap.locator import ensure_executable, locate_binary
from binswap.logging import get_logger
from binswap.models import (
    ReleaseRef,
    SwapTransaction,
    TargetOutcome,
    TargetOutcomeKind,
    UpdateRequest,
    UpdateRequestBuilder,
    UpdateResult,
    UpdateStatus,
)
from binswap.reporter import ConsoleReporter, Reporter
from binswap.swap import Rename, SwapEngine
from binswap.targets import PlatformDetector, TargetDetector, enumerate_targets, is_windows_target
from binswap.version import VersionResolver

log = get_logger("binswap.updater")

ConfirmFn = Callable[[], Awaitable[bool]]


class TargetDecision(Enum):
    INSTALL = "install"
    CONTINUE = "continue"
    ABORT = "abort"


class TargetPolicy:
    """Decides what a target outcome means for the rest of the target list.

    A missing artifact is normal (not every release ships every platform)
    and moves on. A fetch error aborts unless ``skip_failed`` is set.
    """

    def __init__(self, skip_failed: bool = False) -> None:
        self.skip_failed = skip_failed

    def decide(self, outcome: TargetOutcome) -> TargetDecision:
        if outcome.kind is TargetOutcomeKind.FOUND:
            return TargetDecision.INSTALL
        if outcome.kind is TargetOutcomeKind.UNAVAILABLE:
            return TargetDecision.CONTINUE
        return TargetDecision.CONTINUE if self.skip_failed else TargetDecision.ABORT


def current_executable() -> Path:
    """Path of the running program (the frozen executable when bundled)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    return Path(sys.argv[0]).resolve()


def _reset_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


class Updater:
    """Fetches a release binary and swaps it with an installed one."""

    def __init__(
        self,
        request: UpdateRequest,
        *,
        settings: Settings | None = None,
        fetcher: ReleaseFetcher | None = None,
        resolver: VersionResolver | None = None,
        detector: TargetDetector | None = None,
        reporter: Reporter | None = None,
        confirm_fn: ConfirmFn | None = None,
        rename: Rename | None = None,
    ) -> None:
        self.request = request
        self._settings = settings or get_settings()
        self._fetcher = fetcher
        self._resolver = resolver
        self._detector = detector or PlatformDetector()
        self._reporter = reporter or ConsoleReporter()
        self._confirm = confirm_fn or confirm
        self._swap_engine = SwapEngine(rename)
        self._policy = TargetPolicy(skip_failed=request.skip_failed_targets)

    async def fetch_and_write_in_place_of_current_exec(self) -> UpdateResult:
        """Replace the running program with the release binary.

        This alters the installed binary and cannot be undone by binswap.
        """
        return await self.fetch_and_write_to(current_executable())

    async def fetch_and_write_to(self, target_binary: str | Path) -> UpdateResult:
        """Download the release binary and swap it in at ``target_binary``."""
        target_path = Path(target_binary)
        if not target_path.name:
            raise BinswapError("target file had no name")

        workspace = self._create_workspace(target_path)
        keep_workspace = False

        with structlog.contextvars.bound_contextvars(
            repo=self.request.repo_url, bin_name=self.request.bin_name
        ):
            try:
                async with AsyncExitStack() as stack:
                    client: ThrottledClient | None = None
                    if self._fetcher is None or self._resolver is None:
                        client = ThrottledClient.from_settings(self._settings)
                        stack.push_async_callback(client.aclose)
                    return await self._run(target_path, workspace, client)
            except DoubleFailureError:
                keep_workspace = True
                raise
            finally:
                if not keep_workspace:
                    shutil.rmtree(workspace, ignore_errors=True)

    def _create_workspace(self, target_path: Path) -> Path:
        """Create the scratch directory holding staging and the backup.

        Renames need it on the target's volume. A dry run never renames, so
        it goes to the system temp directory unless ``scratch_dir`` is set.
        """
        parent: str | None
        if self._settings.scratch_dir:
            parent = self._settings.scratch_dir
        elif self.request.dry_run:
            parent = None
        else:
            parent = str(target_path.parent)

        try:
            return Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent))
        except OSError as exc:
            location = parent or tempfile.gettempdir()
            log.error("binswap_scratch_create_failed", directory=location, error=str(exc))
            raise SwapError(
                f"cannot create scratch directory in {location} for {target_path}: {exc}"
            ) from exc

    async def _run(
        self, target_path: Path, workspace: Path, client: ThrottledClient | None
    ) -> UpdateResult:
        request = self.request
        reporter = self._reporter
        result = UpdateResult(
            status=UpdateStatus.DECLINED,
            target_path=target_path,
            dry_run=request.dry_run,
        )

        resolver = self._resolver
        if resolver is None:
            assert client is not None
            resolver = VersionResolver(
                client,
                request.repo_author,
                request.repo_name,
                api_url=self._settings.github_api_url,
            )
        fetcher = self._fetcher
        if fetcher is None:
            assert client is not None
            fetcher = GithubReleaseFetcher(client, api_url=self._settings.github_api_url)

        reporter.stage("updating", name=target_path.name)
        if request.version is None:
            reporter.stage("resolving_version")
        version = await resolver.resolve(request.version)
        result.version = version
        result.steps_completed.append("resolve_version")
        reporter.stage("version", version=version)
        log.info("binswap_version_resolved", version=version)

        release = ReleaseRef(
            repo_author=request.repo_author,
            repo_name=request.repo_name,
            asset_name=request.resolved_asset_name,
            version=version,
            bin_name=request.bin_name,
        )
        staging = workspace / STAGING_DIR_NAME
        targets = enumerate_targets(request, self._detector)
        log.debug("binswap_targets", targets=targets)

        for target in targets:
            outcome = await self._try_target(fetcher, release, target, staging)
            decision = self._policy.decide(outcome)
            if decision is TargetDecision.CONTINUE:
                if outcome.kind is TargetOutcomeKind.ERROR:
                    reporter.warning(
                        f" > Fetching for target {target} failed, trying next target..."
                    )
                continue
            if decision is TargetDecision.ABORT:
                assert outcome.error is not None
                raise outcome.error

            assert outcome.candidate is not None
            result.target = target
            result.steps_completed.append(f"fetch_{target}")
            return await self._install(
                outcome.candidate, target, target_path, workspace, result
            )

        log.warning("binswap_not_found", targets=targets, version=version)
        raise NotFoundError(targets)

    async def _try_target(
        self, fetcher: ReleaseFetcher, release: ReleaseRef, target: str, staging: Path
    ) -> TargetOutcome:
        self._reporter.stage("searching", target=target)
        try:
            if not await fetcher.find(release, target):
                return TargetOutcome.unavailable(target)
            self._reporter.stage("downloading", target=target)
            _reset_dir(staging)
            await fetcher.fetch_and_extract(target, staging)
        except FetchError as exc:
            log.warning("binswap_fetch_failed", target=target, error=str(exc))
            return TargetOutcome.failed(target, exc)
        except Exception as exc:
            log.warning("binswap_fetch_failed", target=target, error=str(exc))
            error = FetchError(f"fetching for target {target} failed: {exc}", target=target)
            error.__cause__ = exc
            return TargetOutcome.failed(target, error)

        candidate = locate_binary(staging, self.request.bin_name, target)
        if candidate is None:
            self._reporter.warning(" > No binary found in asset, trying next target...")
            return TargetOutcome.unavailable(target)
        return TargetOutcome.found(target, candidate)

    async def _install(
        self,
        candidate: Path,
        target: str,
        target_path: Path,
        workspace: Path,
        result: UpdateResult,
    ) -> UpdateResult:
        request = self.request
        reporter = self._reporter

        if not is_windows_target(target):
            ensure_executable(candidate)

        if not request.no_check_with_cmd:
            reporter.stage("checking", check_cmd=request.check_with_cmd)
            await run_health_check(
                candidate,
                request.check_with_cmd,
                timeout=self._settings.health_check_timeout_seconds,
            )
            result.steps_completed.append("health_check")

        reporter.stage("about_to_write", target_path=target_path)

        if not request.no_confirm:
            if not await self._confirm():
                reporter.stage("declined")
                log.info("binswap_declined", target_path=str(target_path))
                result.status = UpdateStatus.DECLINED
                result.completed_at = datetime.now(UTC).isoformat()
                return result
            result.steps_completed.append("confirmed")

        txn = SwapTransaction(
            target_path=target_path,
            backup_path=workspace / BACKUP_FILE_NAME,
            candidate_path=candidate,
            dry_run=request.dry_run,
        )
        self._swap_engine.swap(txn)
        result.steps_completed.append("swap")

        if request.dry_run:
            result.status = UpdateStatus.DRY_RUN
            reporter.stage("updated_dry_run", name=target_path.name)
        else:
            result.status = UpdateStatus.SWAPPED
            reporter.stage("updated", name=target_path.name)

        result.completed_at = datetime.now(UTC).isoformat()
        log.info(
            "binswap_update_complete",
            status=result.status.value,
            version=result.version,
            target=target,
        )
        return result


class UpdaterBuilder(UpdateRequestBuilder):
    """``UpdateRequestBuilder`` whose ``build()`` returns a ready ``Updater``."""

    def build(self) -> Updater:  # type: ignore[override]
        return Updater(super().build())


def builder() -> UpdaterBuilder:
    """Create a new builder. Finish by calling ``.build()``.

    Example::

        await (
            builder()
            .repo_author("BurntSushi")
            .repo_name("ripgrep")
            .asset_name("ripgrep")
            .bin_name("rg")
            .dry_run(True)
            .build()
            .fetch_and_write_in_place_of_current_exec()
        )
    """
    return UpdaterBuilder()
