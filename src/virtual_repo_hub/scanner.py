"""Filesystem scanning for git repositories."""

import fnmatch
from collections.abc import Iterator
from pathlib import Path

MAX_DEPTH = 20  # Prevent infinite loops from symlinks


def find_git_repos(
    scan_paths: list[Path],
    exclude_patterns: list[str],
    exclude_paths: list[Path],
) -> Iterator[Path]:
    """Find all git repositories in the given paths.

    Walks directory trees looking for working copies (a ``.git`` entry) and
    bare repositories. Stops descending once a repository is found.

    Args:
        scan_paths: Root directories to scan.
        exclude_patterns: Glob patterns to exclude (e.g., "**/node_modules").
        exclude_paths: Specific absolute paths to exclude.

    Yields:
        Path to each repository root.
    """
    visited: set[int] = set()

    for scan_path in scan_paths:
        if not scan_path.exists():
            continue
        if not scan_path.is_dir():
            continue

        yield from scan_directory(
            root=scan_path,
            exclude_patterns=exclude_patterns,
            exclude_paths=set(exclude_paths),
            visited=visited,
            depth=0,
        )


def scan_directory(
    root: Path,
    exclude_patterns: list[str],
    exclude_paths: set[Path],
    visited: set[int],
    depth: int,
) -> Iterator[Path]:
    """Recursively scan a directory for git repos.

    Args:
        root: Directory to scan.
        exclude_patterns: Patterns to exclude.
        exclude_paths: Paths to exclude.
        visited: Set of visited inode numbers to prevent loops.
        depth: Current recursion depth.

    Yields:
        Path to each repository root found.
    """
    if depth > MAX_DEPTH:
        return

    try:
        stat_info = root.stat()
    except OSError:
        return

    if stat_info.st_ino in visited:
        return
    visited.add(stat_info.st_ino)

    if should_exclude(root, exclude_patterns, exclude_paths):
        return

    if is_git_repo(root):
        yield root
        return  # Don't descend into git repos

    try:
        entries = sorted(root.iterdir())
    except OSError:
        return

    for entry in entries:
        if not entry.is_dir():
            continue
        if entry.name.startswith("."):
            continue

        yield from scan_directory(
            root=entry,
            exclude_patterns=exclude_patterns,
            exclude_paths=exclude_paths,
            visited=visited,
            depth=depth + 1,
        )


def is_git_repo(path: Path) -> bool:
    """Check if a directory is a working copy or a bare repository.

    Working copies have a ``.git`` directory, or a ``.git`` file for linked
    worktrees and submodules. Bare repositories have ``HEAD``, ``objects``
    and ``refs`` at their top level.
    """
    if (path / ".git").exists():
        return True
    return (path / "HEAD").is_file() and (path / "objects").is_dir() and (path / "refs").is_dir()


def should_exclude(
    path: Path,
    exclude_patterns: list[str],
    exclude_paths: set[Path],
) -> bool:
    """Check if a path should be excluded from scanning.

    Args:
        path: Path to check.
        exclude_patterns: Glob patterns to match against.
        exclude_paths: Explicit paths to exclude.

    Returns:
        True if path should be excluded.
    """
    if path in exclude_paths:
        return True

    return matches_any_pattern(path, exclude_patterns)


def matches_any_pattern(path: Path, patterns: list[str]) -> bool:
    """Check if path matches any of the glob patterns.

    Supports patterns like "**/node_modules" and "vendor/*".

    Args:
        path: Path to check.
        patterns: List of glob patterns.

    Returns:
        True if path matches any pattern.
    """
    path_str = str(path)

    for pattern in patterns:
        if "**" in pattern:
            pattern_name = pattern.replace("**/", "").replace("**", "")
            if fnmatch.fnmatch(path.name, pattern_name):
                return True
        elif fnmatch.fnmatch(path.name, pattern):
            return True
        if fnmatch.fnmatch(path_str, pattern):
            return True

    return False
