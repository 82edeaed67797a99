"""Git backend implemented on top of the git command line."""

import logging
import os
import subprocess
from collections.abc import Iterator
from pathlib import Path

from virtual_repo_hub.backend import (
    BackendError,
    EntryStatus,
    GitBackend,
    GitBranch,
    NotARepository,
    RepositoryState,
    StashCallback,
    UpstreamNotFound,
)
from virtual_repo_hub.constants import APP_NAME

logger = logging.getLogger(APP_NAME)

DEFAULT_TIMEOUT = 30

LOCAL_PREFIX = b"refs/heads/"
REMOTE_PREFIX = b"refs/remotes/"

INDEX_FLAGS = {
    "A": EntryStatus.INDEX_NEW,
    "C": EntryStatus.INDEX_NEW,
    "M": EntryStatus.INDEX_MODIFIED,
    "D": EntryStatus.INDEX_DELETED,
    "R": EntryStatus.INDEX_RENAMED,
    "T": EntryStatus.INDEX_TYPECHANGE,
}

WORKTREE_FLAGS = {
    "A": EntryStatus.WT_NEW,
    "M": EntryStatus.WT_MODIFIED,
    "D": EntryStatus.WT_DELETED,
    "R": EntryStatus.WT_RENAMED,
    "T": EntryStatus.WT_TYPECHANGE,
}

CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

# Marker files inside the git directory, checked in order.
STATE_MARKERS = [
    ("rebase-merge", RepositoryState.REBASING),
    ("rebase-apply/applying", RepositoryState.APPLYING_MAILBOX),
    ("rebase-apply", RepositoryState.REBASING),
    ("MERGE_HEAD", RepositoryState.MERGING),
    ("REVERT_HEAD", RepositoryState.REVERTING),
    ("CHERRY_PICK_HEAD", RepositoryState.CHERRY_PICKING),
    ("BISECT_LOG", RepositoryState.BISECTING),
]


def run_git_command(
    repo_path: Path,
    args: list[str],
    timeout: int = DEFAULT_TIMEOUT,
) -> subprocess.CompletedProcess[bytes]:
    """Run a read-only git command in a repository.

    Output is returned as raw bytes so that names which are not valid UTF-8
    can be detected instead of silently mangled.

    Args:
        repo_path: Path to repository root.
        args: Git command arguments (without 'git' prefix).
        timeout: Command timeout in seconds.

    Returns:
        CompletedProcess with stdout/stderr as bytes.

    Raises:
        BackendError: If the command cannot be run or times out.
    """
    cmd = ["git", "--no-optional-locks", "-C", str(repo_path), *args]
    logger.debug("Running %s", " ".join(cmd))

    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise BackendError(f"Command timed out after {timeout}s: {' '.join(args)}", repo_path) from e
    except OSError as e:
        raise BackendError(f"Failed to run git: {e}", repo_path) from e


def decode_name(raw: bytes) -> str | None:
    """Decode a ref or remote name, returning None if it is not valid UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def parse_status_code(code: str) -> EntryStatus:
    """Translate a porcelain v1 ``XY`` code into status flags.

    Args:
        code: Two character status code from ``git status --porcelain``.

    Returns:
        Combined EntryStatus flags for the entry.
    """
    if code == "??":
        return EntryStatus.WT_NEW
    if code == "!!":
        return EntryStatus.IGNORED
    if code in CONFLICT_CODES:
        return EntryStatus.CONFLICTED

    flags = EntryStatus.CURRENT
    flags |= INDEX_FLAGS.get(code[0], EntryStatus.CURRENT)
    flags |= WORKTREE_FLAGS.get(code[1], EntryStatus.CURRENT)
    return flags


def parse_porcelain_z(output: bytes) -> Iterator[EntryStatus]:
    """Parse ``git status --porcelain -z`` output into status flags.

    Renamed and copied entries, in the index or the worktree, carry their
    original path as an extra field, which is skipped.

    Args:
        output: Raw stdout of the status command.

    Yields:
        Status flags for each entry.
    """
    fields = output.split(b"\0")
    index = 0
    while index < len(fields):
        entry = fields[index]
        index += 1
        if len(entry) < 3:
            continue
        code = entry[:2].decode("ascii", errors="replace")
        if "R" in code or "C" in code:
            index += 1
        yield parse_status_code(code)


class CliBranch(GitBranch):
    """Branch handle backed by a ref listed by ``git for-each-ref``."""

    def __init__(
        self,
        backend: "CliGitBackend",
        refname: bytes,
        commit_id: str,
        upstream_ref: bytes = b"",
    ) -> None:
        self.backend = backend
        self.refname = refname
        self.commit_id = commit_id
        self.upstream_ref = upstream_ref

    @property
    def name(self) -> str | None:
        raw = self.refname
        for prefix in (LOCAL_PREFIX, REMOTE_PREFIX):
            if raw.startswith(prefix):
                raw = raw[len(prefix) :]
                break
        return decode_name(raw)

    def upstream(self) -> "CliBranch":
        if not self.upstream_ref:
            raise UpstreamNotFound(
                f"No upstream configured for {os.fsdecode(self.refname)}", self.backend.path
            )

        commit_id = self.backend.resolve_commit(self.upstream_ref)
        if commit_id is None:
            raise UpstreamNotFound(
                f"Upstream {os.fsdecode(self.upstream_ref)} does not exist", self.backend.path
            )
        return CliBranch(self.backend, self.upstream_ref, commit_id)

    def tip_commit_id(self) -> str:
        return self.commit_id


class CliGitBackend(GitBackend):
    """Read-only repository queries answered by running git."""

    def __init__(self, path: Path, git_dir: Path, bare: bool) -> None:
        """Initialize CliGitBackend.

        Use ``CliGitBackend.open`` rather than calling this directly.

        Args:
            path: Repository root (working tree, or git directory if bare).
            git_dir: Absolute path of the git directory.
            bare: Whether the repository has no working tree.
        """
        self.path = path
        self.git_dir = git_dir
        self.bare = bare

    @classmethod
    def open(cls, path: Path) -> "CliGitBackend":
        """Open the repository rooted exactly at ``path``.

        Parent directories are not searched; a path inside a repository that
        is not its root is rejected.

        Args:
            path: Working tree root or bare repository directory.

        Returns:
            Backend bound to the repository.

        Raises:
            NotARepository: If ``path`` is not a repository root.
        """
        path = path.expanduser().resolve()
        if not path.is_dir():
            raise NotARepository(f"Not a git repository: {path}", path)

        result = run_git_command(path, ["rev-parse", "--is-bare-repository", "--absolute-git-dir"])
        lines = result.stdout.decode("utf-8", errors="surrogateescape").splitlines()
        if result.returncode != 0 or len(lines) != 2:
            raise NotARepository(f"Not a git repository: {path}", path)

        bare = lines[0].strip() == "true"
        git_dir = Path(lines[1].strip()).resolve()

        if bare:
            root = git_dir
        else:
            toplevel = run_git_command(path, ["rev-parse", "--show-toplevel"])
            if toplevel.returncode != 0:
                raise NotARepository(f"Not a git repository: {path}", path)
            root = Path(os.fsdecode(toplevel.stdout.strip())).resolve()

        if root != path:
            raise NotARepository(f"Not a git repository root: {path} (inside {root})", path)

        logger.debug("Opened %s repository at %s", "bare" if bare else "non-bare", path)
        return cls(path, git_dir, bare)

    def run(self, args: list[str]) -> bytes:
        """Run a git command that must succeed and return its stdout.

        Raises:
            BackendError: If git exits with a non-zero status.
        """
        result = run_git_command(self.path, args)
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise BackendError(f"git {' '.join(args)} failed: {stderr}", self.path)
        return result.stdout

    def resolve_commit(self, refname: bytes) -> str | None:
        """Resolve a ref to a commit id, or None if it does not exist."""
        spec = os.fsdecode(refname) + "^{commit}"
        result = run_git_command(self.path, ["rev-parse", "--verify", "--quiet", spec])
        if result.returncode != 0:
            return None
        return result.stdout.decode("ascii").strip()

    def is_bare(self) -> bool:
        return self.bare

    def remotes(self) -> list[str | None]:
        output = self.run(["remote"])
        return [decode_name(line) for line in output.splitlines() if line]

    def working_tree_status(self) -> Iterator[EntryStatus]:
        output = self.run(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        return parse_porcelain_z(output)

    def operational_state(self) -> RepositoryState:
        for marker, state in STATE_MARKERS:
            if (self.git_dir / marker).exists():
                return state
        return RepositoryState.CLEAN

    def for_each_stash(self, callback: StashCallback) -> int:
        output = self.run(["stash", "list", "--format=%H%x00%gs"])
        visited = 0
        for index, line in enumerate(output.splitlines()):
            commit_id, _, message = line.partition(b"\0")
            visited += 1
            if not callback(index, message.decode("utf-8", errors="replace"), commit_id.decode("ascii")):
                break
        return visited

    def list_branches(self, namespace: str) -> list[CliBranch]:
        """List branches under a ref namespace such as ``refs/heads``."""
        output = self.run(
            ["for-each-ref", "--format=%(refname) %(objectname) %(upstream)", namespace]
        )
        branches = []
        for line in output.splitlines():
            if not line:
                continue
            refname, commit_id, upstream_ref = (line.split(b" ", 2) + [b"", b""])[:3]
            branches.append(CliBranch(self, refname, commit_id.decode("ascii"), upstream_ref))
        return branches

    def local_branches(self) -> list[GitBranch]:
        return list(self.list_branches("refs/heads"))

    def remote_branches(self) -> list[GitBranch]:
        return list(self.list_branches("refs/remotes"))

    def merge_base(self, one: str, two: str) -> str | None:
        result = run_git_command(self.path, ["merge-base", one, two])
        if result.returncode == 0:
            return result.stdout.decode("ascii").strip()
        if result.returncode == 1 and not result.stdout.strip():
            return None
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise BackendError(f"git merge-base {one} {two} failed: {stderr}", self.path)
