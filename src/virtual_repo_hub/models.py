"""Data models for virtual-repo-hub."""

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, NamedTuple

from pydantic import BaseModel, Field

from virtual_repo_hub.constants import DEFAULT_EXCLUDE_PATTERNS


class TrackingStatus(str, Enum):
    """Relationship between a local branch and its configured upstream."""

    DIVERGED = "diverged"
    AHEAD = "ahead"
    BEHIND = "behind"
    CURRENT = "current"


class TrackingBranch(BaseModel):
    """A local branch with a configured upstream."""

    kind: Literal["tracking_branch"] = "tracking_branch"
    status: TrackingStatus

    model_config = {"frozen": True}

    @property
    def merged_in_upstream(self) -> bool:
        """True if every commit on the branch is also on its upstream."""
        return self.status in (TrackingStatus.BEHIND, TrackingStatus.CURRENT)


class LocalBranch(BaseModel):
    """A local branch without an upstream."""

    kind: Literal["local_branch"] = "local_branch"
    merged_in_remote: bool

    model_config = {"frozen": True}

    @property
    def merged_in_upstream(self) -> bool:
        """True if the branch history is contained in some remote branch."""
        return self.merged_in_remote


BranchStatus = Annotated[TrackingBranch | LocalBranch, Field(discriminator="kind")]


def merged_in_upstream(branch: TrackingBranch | LocalBranch) -> bool:
    """Check whether a branch's history is preserved in remote-tracked history.

    Args:
        branch: Classification of a single local branch.

    Returns:
        True for tracking branches that are behind or current, and for local
        branches merged into some remote branch.
    """
    return branch.merged_in_upstream


class Remote(BaseModel):
    """A configured remote."""

    name: str

    model_config = {"frozen": True}


class RepoStatus(BaseModel):
    """Snapshot of everything needed to decide whether a repo is backed up."""

    bare: bool
    # True if nothing is staged or modified and there are no untracked files.
    clean_status: bool
    # True if there is no merge, rebase or similar operation in progress.
    clean_state: bool
    stashes: int = Field(default=0, ge=0)
    remotes: list[Remote] = Field(default_factory=list)
    branches: dict[str, BranchStatus] = Field(default_factory=dict)

    model_config = {"frozen": True}


class Severity(str, Enum):
    """How much a diagnostic matters for the backup verdict."""

    ERROR = "error"
    ADVISORY = "advisory"
    INFO = "info"


class DiagnosticCode(str, Enum):
    """Kinds of findings reported by the backup policy."""

    NOT_EVALUATED = "not_evaluated"
    DIRTY_WORKING_TREE = "dirty_working_tree"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    NO_REMOTES = "no_remotes"
    BRANCH_NOT_MERGED = "branch_not_merged"
    STASHES_PRESENT = "stashes_present"


class Diagnostic(BaseModel):
    """A single human-readable finding about a repository."""

    code: DiagnosticCode
    severity: Severity
    message: str
    branch: str | None = None

    model_config = {"frozen": True}


class BackupReport(NamedTuple):
    """Verdict of the backup policy with the diagnostics that justify it."""

    backed_up: bool
    diagnostics: list[Diagnostic]

    @property
    def evaluated(self) -> bool:
        """False if the repository was excluded from evaluation."""
        return not any(d.code == DiagnosticCode.NOT_EVALUATED for d in self.diagnostics)


class RepoCheck(BaseModel):
    """Result of checking a single repository."""

    path: Path
    status: RepoStatus | None = None
    backed_up: bool = False
    evaluated: bool = False
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    error_message: str | None = None

    model_config = {"arbitrary_types_allowed": True}


class CheckResult(BaseModel):
    """Result of checking many repositories."""

    repos: list[RepoCheck] = Field(default_factory=list)
    total_checked: int = 0

    @property
    def passed(self) -> int:
        return sum(1 for r in self.repos if r.evaluated and r.backed_up)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.repos if r.evaluated and not r.backed_up)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.repos if r.error_message is None and not r.evaluated)

    @property
    def errors(self) -> int:
        return sum(1 for r in self.repos if r.error_message is not None)


class DeviceConfig(BaseModel):
    """Per-device settings stored under the active hub."""

    # Directories that will be indexed, keyed by alias.
    starred: dict[str, str] = Field(default_factory=dict)

    # Glob patterns for directories skipped while scanning starred directories
    exclude_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))

    # Specific directories skipped while scanning
    exclude_paths: list[str] = Field(default_factory=list)


class Config(BaseModel):
    """Device identity and settings loaded from the config directory."""

    device_id: str
    hub: str
    device: DeviceConfig = Field(default_factory=DeviceConfig)

    def star(self, alias: str, path: Path) -> None:
        """Register a directory under an alias, replacing any previous one.

        Args:
            alias: Short name for the directory.
            path: Directory to star.
        """
        self.device.starred[alias] = str(path)

    def unstar(self, alias: str) -> bool:
        """Remove a starred alias.

        Args:
            alias: Alias to remove.

        Returns:
            True if the alias existed.
        """
        return self.device.starred.pop(alias, None) is not None

    def starred_paths(self) -> list[Path]:
        """Return starred directories with ~ expanded and resolved."""
        return [Path(p).expanduser().resolve() for p in self.device.starred.values()]

    def excluded_paths(self) -> list[Path]:
        """Return excluded directories with ~ expanded and resolved."""
        return [Path(p).expanduser().resolve() for p in self.device.exclude_paths]
