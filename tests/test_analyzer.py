"""Tests for analyzer module."""

from unittest.mock import patch

from repo_gen import commit
from virtual_repo_hub import analyzer
from virtual_repo_hub.backend import BackendError
from virtual_repo_hub.models import DiagnosticCode, RepoCheck


class TestCheckRepo:
    def test_backed_up_clone(self, cloned_repo):
        result = analyzer.check_repo(cloned_repo)
        assert result.path == cloned_repo
        assert result.backed_up is True
        assert result.evaluated is True
        assert result.error_message is None
        assert result.status is not None

    def test_repo_without_remote_is_at_risk(self, temp_git_repo):
        result = analyzer.check_repo(temp_git_repo)
        assert result.backed_up is False
        codes = [d.code for d in result.diagnostics]
        assert DiagnosticCode.NO_REMOTES in codes
        assert DiagnosticCode.BRANCH_NOT_MERGED in codes

    def test_unpushed_commits_are_at_risk(self, cloned_repo):
        commit(cloned_repo, repeat=2)
        result = analyzer.check_repo(cloned_repo)
        assert result.backed_up is False
        assert [d.branch for d in result.diagnostics] == ["main"]

    def test_bare_repo_is_skipped(self, bare_repo):
        result = analyzer.check_repo(bare_repo)
        assert result.evaluated is False
        assert result.error_message is None

    def test_records_not_a_repository(self, tmp_path):
        result = analyzer.check_repo(tmp_path)
        assert result.status is None
        assert "Not a git repository" in result.error_message

    def test_records_backend_error(self, cloned_repo):
        with patch("virtual_repo_hub.classifier.classify_path") as mock_classify:
            mock_classify.side_effect = BackendError("git exploded", cloned_repo)
            result = analyzer.check_repo(cloned_repo)
        assert result.error_message == "git exploded"


class TestFindRepos:
    def test_finds_repos_with_default_excludes(self, nested_repos):
        repos = analyzer.find_repos([nested_repos])
        names = {r.name for r in repos}
        assert {"repo1", "repo2", "repo3", "server.git"} <= names
        assert "lib" not in names

    def test_custom_excludes(self, nested_repos):
        repos = analyzer.find_repos([nested_repos], exclude_patterns=[])
        assert "lib" in {r.name for r in repos}

    def test_exclude_paths(self, nested_repos):
        repos = analyzer.find_repos([nested_repos], exclude_paths=[nested_repos / "repo1"])
        names = {r.name for r in repos}
        assert "repo1" not in names
        assert "repo2" in names


class TestCheckRepos:
    def test_checks_all_and_sorts_by_path(self, nested_repos):
        paths = sorted(analyzer.find_repos([nested_repos]), reverse=True)
        result = analyzer.check_repos(paths, max_workers=2)
        assert result.total_checked == len(paths)
        assert [r.path for r in result.repos] == sorted(paths)
        for repo in result.repos:
            assert isinstance(repo, RepoCheck)

    def test_counts_outcomes(self, cloned_repo, temp_git_repo, bare_repo, tmp_path):
        missing = tmp_path / "not-a-repo"
        missing.mkdir()
        result = analyzer.check_repos([cloned_repo, temp_git_repo, bare_repo, missing])
        assert result.passed == 1
        assert result.failed == 1
        assert result.skipped == 1
        assert result.errors == 1

    def test_empty_input(self):
        result = analyzer.check_repos([])
        assert result.total_checked == 0
        assert result.repos == []
