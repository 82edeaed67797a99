"""Version-control backend interface used by the status classifier.

The classifier only needs a handful of read-only queries against a repository.
They are collected here as abstract base classes so that the production
implementation (``git_ops.CliGitBackend``) and in-memory test doubles can be
swapped freely.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from enum import Enum, Flag, auto
from pathlib import Path


class BackendError(Exception):
    """Exception raised for any failure while querying a repository."""

    def __init__(self, message: str, repo_path: Path) -> None:
        """Initialize BackendError.

        Args:
            message: Error description.
            repo_path: Path to the repository where error occurred.
        """
        self.repo_path = repo_path
        super().__init__(message)


class NotARepository(BackendError):
    """The path does not point at a working copy or bare repository root."""


class UpstreamNotFound(BackendError):
    """The branch has no configured upstream, or the upstream ref is missing."""


class EntryStatus(Flag):
    """Status bits for a single working-tree or index entry.

    ``CURRENT`` is the empty set: the entry is tracked and unmodified.
    """

    CURRENT = 0
    INDEX_NEW = auto()
    INDEX_MODIFIED = auto()
    INDEX_DELETED = auto()
    INDEX_RENAMED = auto()
    INDEX_TYPECHANGE = auto()
    WT_NEW = auto()
    WT_MODIFIED = auto()
    WT_DELETED = auto()
    WT_RENAMED = auto()
    WT_TYPECHANGE = auto()
    IGNORED = auto()
    CONFLICTED = auto()


class RepositoryState(Enum):
    """Multi-step operation the repository is in the middle of, if any."""

    CLEAN = "clean"
    MERGING = "merging"
    REBASING = "rebasing"
    APPLYING_MAILBOX = "applying_mailbox"
    CHERRY_PICKING = "cherry_picking"
    REVERTING = "reverting"
    BISECTING = "bisecting"


StashCallback = Callable[[int, str, str], bool]


class GitBranch(ABC):
    """Handle to a local or remote-tracking branch."""

    @property
    @abstractmethod
    def name(self) -> str | None:
        """Short branch name, or None if it cannot be decoded as text."""

    @abstractmethod
    def upstream(self) -> "GitBranch":
        """Return the configured upstream branch.

        Raises:
            UpstreamNotFound: If no upstream is configured or it does not exist.
            BackendError: For any other failure.
        """

    @abstractmethod
    def tip_commit_id(self) -> str:
        """Return the id of the commit the branch points at."""


class GitBackend(ABC):
    """Read-only queries against a single opened repository."""

    @abstractmethod
    def is_bare(self) -> bool:
        """True if the repository has no working tree."""

    @abstractmethod
    def remotes(self) -> list[str | None]:
        """Configured remote names; None for names that are not valid text."""

    @abstractmethod
    def working_tree_status(self) -> Iterator[EntryStatus]:
        """Yield the status flags of every reported working-tree/index entry."""

    @abstractmethod
    def operational_state(self) -> RepositoryState:
        """Return the operation currently in progress."""

    @abstractmethod
    def for_each_stash(self, callback: StashCallback) -> int:
        """Call ``callback(index, message, commit_id)`` for every stash entry.

        Enumeration stops early if the callback returns False.

        Returns:
            Number of entries visited.
        """

    @abstractmethod
    def local_branches(self) -> list[GitBranch]:
        """All local branches."""

    @abstractmethod
    def remote_branches(self) -> list[GitBranch]:
        """All remote-tracking branches known locally."""

    @abstractmethod
    def merge_base(self, one: str, two: str) -> str | None:
        """Best common ancestor of two commits, or None if they share no history."""
