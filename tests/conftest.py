"""Shared test fixtures."""

from pathlib import Path

import pytest

from repo_gen import clone_repo, commit, init_repo, run_git
from virtual_repo_hub.models import LocalBranch, Remote, RepoStatus, TrackingBranch, TrackingStatus


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository on main with one commit."""
    repo_path = init_repo(tmp_path / "test-repo")
    (repo_path / "README.md").write_text("# Test Repo")
    run_git(repo_path, "add", ".")
    run_git(repo_path, "commit", "--quiet", "-m", "Initial commit")
    return repo_path


@pytest.fixture
def temp_git_repo_dirty(temp_git_repo: Path) -> Path:
    """Create a temp git repo with staged changes."""
    (temp_git_repo / "dirty.txt").write_text("uncommitted changes")
    run_git(temp_git_repo, "add", "dirty.txt")
    return temp_git_repo


@pytest.fixture
def temp_git_repo_untracked(temp_git_repo: Path) -> Path:
    """Create a temp git repo with untracked files only."""
    (temp_git_repo / "untracked.txt").write_text("untracked file")
    return temp_git_repo


@pytest.fixture
def origin_repo(tmp_path: Path) -> Path:
    """Create a repository with two commits to clone from."""
    repo_path = init_repo(tmp_path / "origin")
    commit(repo_path, repeat=2)
    return repo_path


@pytest.fixture
def cloned_repo(origin_repo: Path) -> Path:
    """Clone origin_repo; main tracks origin/main and is current."""
    return clone_repo(origin_repo, origin_repo.parent / "clone")


@pytest.fixture
def bare_repo(tmp_path: Path) -> Path:
    """Create an empty bare repository with one remote."""
    repo_path = init_repo(tmp_path / "bare.git", bare=True)
    run_git(repo_path, "remote", "add", "origin", "https://example.com/repo.git")
    return repo_path


@pytest.fixture
def backed_up_status() -> RepoStatus:
    """Status of a repository that passes every check."""
    return RepoStatus(
        bare=False,
        clean_status=True,
        clean_state=True,
        stashes=0,
        remotes=[Remote(name="origin")],
        branches={
            "main": TrackingBranch(status=TrackingStatus.CURRENT),
            "old-feature": LocalBranch(merged_in_remote=True),
        },
    )


@pytest.fixture
def nested_repos(tmp_path: Path) -> Path:
    """Create a directory structure with multiple git repos."""
    base = tmp_path / "projects"
    base.mkdir()

    for name in ["repo1", "repo2", "repo3"]:
        repo = init_repo(base / name)
        (repo / "README.md").write_text(f"# {name}")
        run_git(repo, "add", ".")
        run_git(repo, "commit", "--quiet", "-m", "init")

    init_repo(base / "group" / "server.git", bare=True)

    # Create a node_modules dir that should be excluded
    node_modules = base / "repo1" / "node_modules" / "some-package"
    node_modules.mkdir(parents=True)
    init_repo(node_modules)

    vendored = base / "vendor" / "lib"
    init_repo(vendored)

    return base
