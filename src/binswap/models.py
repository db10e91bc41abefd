"""Data model for update attempts."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from binswap.constants import DEFAULT_CHECK_CMD


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class UpdateStatus(Enum):
    """Successful outcomes of an update attempt."""

    SWAPPED = "swapped"
    DRY_RUN = "dry_run"
    DECLINED = "declined"


class SwapState(Enum):
    """States of the backup/install/rollback state machine."""

    INITIAL = "initial"
    FAILED_BACKUP = "failed_backup"
    BACKED_UP = "backed_up"
    SWAPPED = "swapped"
    ROLLED_BACK = "rolled_back"
    DOUBLE_FAILURE = "double_failure"


class TargetOutcomeKind(Enum):
    """What a single target attempt produced."""

    FOUND = "found"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class UpdateRequest:
    """Parameters for one update attempt."""

    repo_author: str
    repo_name: str
    bin_name: str
    asset_name: str | None = None
    version: str | None = None
    no_confirm: bool = False
    check_with_cmd: str = DEFAULT_CHECK_CMD
    no_check_with_cmd: bool = False
    dry_run: bool = False
    targets: tuple[str, ...] | None = None
    skip_failed_targets: bool = False

    def __post_init__(self) -> None:
        for name in ("repo_author", "repo_name", "bin_name"):
            if not getattr(self, name):
                raise ValueError(f"Missing required field: {name}")
        if self.version is not None and not self.version.strip():
            raise ValueError("version must not be empty when given")
        if self.targets is not None:
            targets = tuple(self.targets)
            if not targets:
                raise ValueError("targets must not be empty when given")
            object.__setattr__(self, "targets", targets)

    @property
    def resolved_asset_name(self) -> str:
        return self.asset_name or self.bin_name

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.repo_author}/{self.repo_name}/"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UpdateRequest:
        """Build a request from a mapping, ignoring unknown keys."""
        known = set(cls.__dataclass_fields__)
        kwargs = {k: v for k, v in data.items() if k in known}
        if kwargs.get("targets") is not None:
            kwargs["targets"] = tuple(kwargs["targets"])
        return cls(**kwargs)


class UpdateRequestBuilder:
    """Fluent builder for ``UpdateRequest``.

    Usage::

        request = (
            UpdateRequestBuilder()
            .repo_author("BurntSushi")
            .repo_name("ripgrep")
            .asset_name("ripgrep")
            .bin_name("rg")
            .dry_run(True)
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> UpdateRequestBuilder:
        self._fields[name] = value
        return self

    def repo_author(self, value: str) -> UpdateRequestBuilder:
        return self._set("repo_author", value)

    def repo_name(self, value: str) -> UpdateRequestBuilder:
        return self._set("repo_name", value)

    def asset_name(self, value: str) -> UpdateRequestBuilder:
        return self._set("asset_name", value)

    def bin_name(self, value: str) -> UpdateRequestBuilder:
        return self._set("bin_name", value)

    def version(self, value: str) -> UpdateRequestBuilder:
        return self._set("version", value)

    def no_confirm(self, value: bool = True) -> UpdateRequestBuilder:
        return self._set("no_confirm", value)

    def check_with_cmd(self, value: str) -> UpdateRequestBuilder:
        return self._set("check_with_cmd", value)

    def no_check_with_cmd(self, value: bool = True) -> UpdateRequestBuilder:
        return self._set("no_check_with_cmd", value)

    def dry_run(self, value: bool = True) -> UpdateRequestBuilder:
        return self._set("dry_run", value)

    def skip_failed_targets(self, value: bool = True) -> UpdateRequestBuilder:
        return self._set("skip_failed_targets", value)

    def targets(self, values: Iterable[str]) -> UpdateRequestBuilder:
        return self._set("targets", tuple(values))

    def add_target(self, target: str) -> UpdateRequestBuilder:
        """Append a target; once any target is given, auto-detection is skipped."""
        current = self._fields.get("targets") or ()
        return self._set("targets", (*current, target))

    def build(self) -> UpdateRequest:
        for name in ("repo_author", "repo_name", "bin_name"):
            if name not in self._fields:
                raise ValueError(f"`{name}` must be initialized")
        return UpdateRequest(**self._fields)


@dataclass(frozen=True)
class ReleaseRef:
    """The release coordinates a fetcher searches for."""

    repo_author: str
    repo_name: str
    asset_name: str
    version: str
    bin_name: str | None = None

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.repo_author}/{self.repo_name}/"


@dataclass(frozen=True)
class TargetOutcome:
    """Tagged result of looking for a usable binary for one target."""

    kind: TargetOutcomeKind
    target: str
    candidate: Path | None = None
    error: BaseException | None = None

    @classmethod
    def found(cls, target: str, candidate: Path) -> TargetOutcome:
        return cls(TargetOutcomeKind.FOUND, target, candidate=candidate)

    @classmethod
    def unavailable(cls, target: str) -> TargetOutcome:
        return cls(TargetOutcomeKind.UNAVAILABLE, target)

    @classmethod
    def failed(cls, target: str, error: BaseException) -> TargetOutcome:
        return cls(TargetOutcomeKind.ERROR, target, error=error)


@dataclass
class SwapTransaction:
    """Transient state of one binary swap."""

    target_path: Path
    backup_path: Path
    candidate_path: Path
    state: SwapState = SwapState.INITIAL
    dry_run: bool = False


@dataclass
class UpdateResult:
    """Result of a successful (or declined) update attempt."""

    status: UpdateStatus
    target_path: Path
    version: str | None = None
    target: str | None = None
    dry_run: bool = False
    steps_completed: list[str] = field(default_factory=list)
    started_at: str = field(default_factory=_now_iso)
    completed_at: str | None = None

    @property
    def changed(self) -> bool:
        """True only when the binary at ``target_path`` was actually replaced."""
        return self.status is UpdateStatus.SWAPPED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "target_path": str(self.target_path),
            "version": self.version,
            "target": self.target,
            "dry_run": self.dry_run,
            "steps_completed": self.steps_completed,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }
