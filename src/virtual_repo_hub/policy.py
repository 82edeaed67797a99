"""Decide whether a repository is safely backed up."""

from virtual_repo_hub.models import (
    BackupReport,
    Diagnostic,
    DiagnosticCode,
    LocalBranch,
    RepoStatus,
    Severity,
    TrackingBranch,
    TrackingStatus,
    merged_in_upstream,
)


def is_backed_up(status: RepoStatus) -> BackupReport:
    """Apply the backup policy to a status snapshot.

    Every check is evaluated and reported; the verdict is the conjunction of
    all failing checks. Stashes are surfaced but never fail the check. Bare
    repositories are not evaluated.

    Args:
        status: Snapshot produced by the classifier.

    Returns:
        BackupReport with the verdict and all diagnostics, in check order.
    """
    if status.bare:
        return BackupReport(
            backed_up=False,
            diagnostics=[
                Diagnostic(
                    code=DiagnosticCode.NOT_EVALUATED,
                    severity=Severity.INFO,
                    message="bare repository, not evaluated",
                )
            ],
        )

    diagnostics: list[Diagnostic] = []

    if not status.clean_status:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.DIRTY_WORKING_TREE,
                severity=Severity.ERROR,
                message="has modified/untracked files",
            )
        )

    if not status.clean_state:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.OPERATION_IN_PROGRESS,
                severity=Severity.ERROR,
                message="operation in progress (merge, rebase, cherry-pick, revert or bisect)",
            )
        )

    if not status.remotes:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.NO_REMOTES,
                severity=Severity.ERROR,
                message="no remotes configured",
            )
        )

    for name in sorted(status.branches):
        branch = status.branches[name]
        if not merged_in_upstream(branch):
            diagnostics.append(
                Diagnostic(
                    code=DiagnosticCode.BRANCH_NOT_MERGED,
                    severity=Severity.ERROR,
                    message=f"branch '{name}' {describe_unmerged(branch)}",
                    branch=name,
                )
            )

    backed_up = not diagnostics

    if status.stashes:
        noun = "entry" if status.stashes == 1 else "entries"
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.STASHES_PRESENT,
                severity=Severity.ADVISORY,
                message=f"{status.stashes} stash {noun} stored locally only",
            )
        )

    return BackupReport(backed_up=backed_up, diagnostics=diagnostics)


def describe_unmerged(branch: TrackingBranch | LocalBranch) -> str:
    """Explain why a branch is not preserved upstream."""
    if isinstance(branch, LocalBranch):
        return "has no upstream and is not merged in any remote branch"
    if branch.status == TrackingStatus.AHEAD:
        return "is ahead of its upstream"
    return "has diverged from its upstream"
