"""Classify a repository into a RepoStatus snapshot."""

import logging
from pathlib import Path

from virtual_repo_hub.backend import EntryStatus, GitBackend, GitBranch, RepositoryState, UpstreamNotFound
from virtual_repo_hub.constants import APP_NAME, NON_UNICODE_REMOTE, NON_UTF8_BRANCH
from virtual_repo_hub.git_ops import CliGitBackend
from virtual_repo_hub.models import LocalBranch, Remote, RepoStatus, TrackingBranch, TrackingStatus

logger = logging.getLogger(APP_NAME)

CONFORMING_ENTRY_STATUSES = (EntryStatus.CURRENT, EntryStatus.IGNORED)


def classify_path(path: Path) -> RepoStatus:
    """Open the repository rooted at ``path`` and classify it.

    Args:
        path: Working tree root or bare repository directory.

    Returns:
        Status snapshot of the repository.

    Raises:
        NotARepository: If ``path`` is not a repository root.
        BackendError: If any git query fails.
    """
    return classify(CliGitBackend.open(path))


def classify(backend: GitBackend) -> RepoStatus:
    """Build a status snapshot from an opened repository.

    A bare repository short-circuits to a trivially clean snapshot with no
    branches; only its remotes are reported.

    Args:
        backend: Opened repository.

    Returns:
        Status snapshot of the repository.

    Raises:
        BackendError: If any query other than an upstream lookup fails.
    """
    bare = backend.is_bare()
    remotes = collect_remotes(backend)

    if bare:
        return RepoStatus(
            bare=True,
            clean_status=True,
            clean_state=True,
            stashes=0,
            remotes=remotes,
            branches={},
        )

    clean_status = is_clean_status(backend)
    clean_state = backend.operational_state() is RepositoryState.CLEAN
    stashes = count_stashes(backend)
    branches = classify_branches(backend)

    return RepoStatus(
        bare=False,
        clean_status=clean_status,
        clean_state=clean_state,
        stashes=stashes,
        remotes=remotes,
        branches=branches,
    )


def collect_remotes(backend: GitBackend) -> list[Remote]:
    """Return the configured remotes, keeping undecodable names as a sentinel."""
    remotes = []
    for name in backend.remotes():
        if name is None:
            logger.warning("Remote name is not valid unicode, reporting as %s", NON_UNICODE_REMOTE)
            name = NON_UNICODE_REMOTE
        remotes.append(Remote(name=name))
    return remotes


def is_clean_status(backend: GitBackend) -> bool:
    """Check that every entry is either unmodified or ignored.

    Stops at the first entry that is staged, modified, conflicted or
    untracked.
    """
    for flags in backend.working_tree_status():
        if flags not in CONFORMING_ENTRY_STATUSES:
            logger.debug("Working tree is dirty (entry status %s)", flags)
            return False
    return True


def count_stashes(backend: GitBackend) -> int:
    """Count stash entries."""
    stashes = 0

    def visit(_index: int, _message: str, _commit_id: str) -> bool:
        nonlocal stashes
        stashes += 1
        return True

    backend.for_each_stash(visit)
    return stashes


def branch_name(branch: GitBranch) -> str:
    """Return the branch name, or a sentinel if it cannot be decoded.

    All undecodable names share the sentinel, so several such branches
    collapse into a single entry of the snapshot.
    """
    name = branch.name
    if name is None:
        logger.warning("Branch name is not valid utf-8, reporting as %s", NON_UTF8_BRANCH)
        return NON_UTF8_BRANCH
    return name


def tracking_status(backend: GitBackend, branch_commit: str, upstream_commit: str) -> TrackingStatus:
    """Relate a branch tip to its upstream tip through their merge base.

    Args:
        backend: Opened repository.
        branch_commit: Commit id of the local branch.
        upstream_commit: Commit id of the upstream branch.

    Returns:
        CURRENT if both are the same commit, BEHIND if the branch is an
        ancestor of the upstream, AHEAD if the upstream is an ancestor of the
        branch, DIVERGED otherwise.
    """
    if branch_commit == upstream_commit:
        return TrackingStatus.CURRENT

    ancestor = backend.merge_base(branch_commit, upstream_commit)
    if ancestor == branch_commit:
        return TrackingStatus.BEHIND
    if ancestor == upstream_commit:
        return TrackingStatus.AHEAD
    return TrackingStatus.DIVERGED


def record_branch(
    branches: dict[str, TrackingBranch | LocalBranch],
    name: str,
    classification: TrackingBranch | LocalBranch,
) -> None:
    """Store a classification, warning when it replaces an earlier one."""
    if name in branches:
        logger.warning("Several branches are reported as %s; keeping the last one", name)
    branches[name] = classification


def classify_branches(backend: GitBackend) -> dict[str, TrackingBranch | LocalBranch]:
    """Classify every local branch.

    Branches with an upstream are compared against it. Branches without one
    are checked against every remote-tracking branch in turn; a branch whose
    tip is an ancestor of some remote branch counts as merged in a remote.

    Args:
        backend: Opened, non-bare repository.

    Returns:
        Mapping from branch name to its classification.
    """
    branches: dict[str, TrackingBranch | LocalBranch] = {}
    pending: list[GitBranch] = []

    for branch in backend.local_branches():
        try:
            upstream = branch.upstream()
        except UpstreamNotFound:
            pending.append(branch)
            continue

        status = tracking_status(backend, branch.tip_commit_id(), upstream.tip_commit_id())
        name = branch_name(branch)
        logger.debug("Branch %s is %s relative to its upstream", name, status.value)
        record_branch(branches, name, TrackingBranch(status=status))

    if pending:
        logger.debug("Checking %d branch(es) without upstream against remote branches", len(pending))

    for remote_branch in backend.remote_branches():
        if not pending:
            break

        remote_commit = remote_branch.tip_commit_id()
        unmerged = []
        for branch in pending:
            commit = branch.tip_commit_id()
            if backend.merge_base(commit, remote_commit) == commit:
                name = branch_name(branch)
                logger.debug("Branch %s is merged in %s", name, remote_branch.name)
                record_branch(branches, name, LocalBranch(merged_in_remote=True))
            else:
                unmerged.append(branch)
        pending = unmerged

    for branch in pending:
        record_branch(branches, branch_name(branch), LocalBranch(merged_in_remote=False))

    return branches
