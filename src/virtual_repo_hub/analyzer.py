"""Check repositories against the backup policy."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from virtual_repo_hub import classifier, scanner
from virtual_repo_hub.backend import BackendError
from virtual_repo_hub.constants import APP_NAME, DEFAULT_EXCLUDE_PATTERNS
from virtual_repo_hub.models import CheckResult, RepoCheck
from virtual_repo_hub.policy import is_backed_up

logger = logging.getLogger(APP_NAME)


def check_repo(repo_path: Path) -> RepoCheck:
    """Classify a single repository and apply the backup policy.

    Backend failures are recorded on the result instead of raised, so one
    broken repository does not stop a scan.

    Args:
        repo_path: Path to repository root.

    Returns:
        RepoCheck with status, verdict and diagnostics, or an error message.
    """
    try:
        status = classifier.classify_path(repo_path)
    except BackendError as e:
        logger.warning("Failed to check %s: %s", repo_path, e)
        return RepoCheck(path=repo_path, error_message=str(e))

    report = is_backed_up(status)
    return RepoCheck(
        path=repo_path,
        status=status,
        backed_up=report.backed_up,
        evaluated=report.evaluated,
        diagnostics=report.diagnostics,
    )


def find_repos(
    scan_paths: list[Path],
    exclude_patterns: list[str] | None = None,
    exclude_paths: list[Path] | None = None,
) -> list[Path]:
    """Find every repository under the given directories.

    Args:
        scan_paths: Directories to scan.
        exclude_patterns: Glob patterns to skip. Defaults to common dependency
            and cache directories.
        exclude_paths: Directories to skip entirely.

    Returns:
        Repository roots in discovery order.
    """
    if exclude_patterns is None:
        exclude_patterns = DEFAULT_EXCLUDE_PATTERNS

    return list(
        scanner.find_git_repos(
            scan_paths=scan_paths,
            exclude_patterns=exclude_patterns,
            exclude_paths=exclude_paths or [],
        )
    )


def check_repos(repo_paths: list[Path], max_workers: int | None = None) -> CheckResult:
    """Check many repositories in parallel.

    Each repository is classified independently, so the order of work does
    not matter; results are sorted by path.

    Args:
        repo_paths: Repository roots to check.
        max_workers: Maximum number of threads.
            Defaults to min(32, cpu_count + 4).

    Returns:
        CheckResult with one entry per repository.
    """
    repos: list[RepoCheck] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {executor.submit(check_repo, path): path for path in repo_paths}

        for future in as_completed(future_to_path):
            repos.append(future.result())

    repos.sort(key=lambda r: r.path)

    return CheckResult(repos=repos, total_checked=len(repos))
