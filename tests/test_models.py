"""Tests for models module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from virtual_repo_hub.models import (
    BackupReport,
    CheckResult,
    Config,
    Diagnostic,
    DiagnosticCode,
    LocalBranch,
    Remote,
    RepoCheck,
    RepoStatus,
    Severity,
    TrackingBranch,
    TrackingStatus,
    merged_in_upstream,
)


class TestTrackingStatus:
    def test_all_status_values_exist(self):
        expected = ["diverged", "ahead", "behind", "current"]
        actual = [s.value for s in TrackingStatus]
        assert sorted(actual) == sorted(expected)

    def test_status_is_string_enum(self):
        assert TrackingStatus.AHEAD == "ahead"


class TestMergedInUpstream:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (TrackingStatus.CURRENT, True),
            (TrackingStatus.BEHIND, True),
            (TrackingStatus.AHEAD, False),
            (TrackingStatus.DIVERGED, False),
        ],
    )
    def test_tracking_branch(self, status, expected):
        assert merged_in_upstream(TrackingBranch(status=status)) is expected

    def test_local_branch_follows_flag(self):
        assert merged_in_upstream(LocalBranch(merged_in_remote=True)) is True
        assert merged_in_upstream(LocalBranch(merged_in_remote=False)) is False


class TestRepoStatus:
    def test_round_trips_through_json(self, backed_up_status):
        restored = RepoStatus.model_validate_json(backed_up_status.model_dump_json())
        assert restored == backed_up_status

    def test_serializes_snake_case_fields(self, backed_up_status):
        data = backed_up_status.model_dump(mode="json")
        assert set(data) == {"bare", "clean_status", "clean_state", "stashes", "remotes", "branches"}
        assert data["remotes"] == [{"name": "origin"}]
        assert data["branches"]["main"] == {"kind": "tracking_branch", "status": "current"}
        assert data["branches"]["old-feature"] == {"kind": "local_branch", "merged_in_remote": True}

    def test_validates_branch_variants_from_dict(self):
        status = RepoStatus.model_validate(
            {
                "bare": False,
                "clean_status": True,
                "clean_state": True,
                "stashes": 1,
                "remotes": [],
                "branches": {
                    "a": {"kind": "tracking_branch", "status": "diverged"},
                    "b": {"kind": "local_branch", "merged_in_remote": False},
                },
            }
        )
        assert status.branches["a"] == TrackingBranch(status=TrackingStatus.DIVERGED)
        assert status.branches["b"] == LocalBranch(merged_in_remote=False)

    def test_rejects_unknown_branch_kind(self):
        with pytest.raises(ValidationError):
            RepoStatus.model_validate(
                {
                    "bare": False,
                    "clean_status": True,
                    "clean_state": True,
                    "branches": {"a": {"kind": "detached"}},
                }
            )

    def test_rejects_negative_stashes(self):
        with pytest.raises(ValidationError):
            RepoStatus(bare=False, clean_status=True, clean_state=True, stashes=-1)

    def test_is_immutable(self, backed_up_status):
        with pytest.raises(ValidationError):
            backed_up_status.stashes = 3

    def test_equality_ignores_branch_order(self):
        one = RepoStatus(
            bare=False,
            clean_status=True,
            clean_state=True,
            branches={"a": LocalBranch(merged_in_remote=True), "b": LocalBranch(merged_in_remote=False)},
        )
        two = RepoStatus(
            bare=False,
            clean_status=True,
            clean_state=True,
            branches={"b": LocalBranch(merged_in_remote=False), "a": LocalBranch(merged_in_remote=True)},
        )
        assert one == two

    def test_remote_list_order_matters(self):
        one = RepoStatus(bare=False, clean_status=True, clean_state=True, remotes=[Remote(name="a"), Remote(name="b")])
        two = RepoStatus(bare=False, clean_status=True, clean_state=True, remotes=[Remote(name="b"), Remote(name="a")])
        assert one != two


class TestBackupReport:
    def test_unpacks_as_pair(self):
        backed_up, diagnostics = BackupReport(backed_up=True, diagnostics=[])
        assert backed_up is True
        assert diagnostics == []

    def test_not_evaluated_when_skipped(self):
        report = BackupReport(
            backed_up=False,
            diagnostics=[
                Diagnostic(code=DiagnosticCode.NOT_EVALUATED, severity=Severity.INFO, message="bare")
            ],
        )
        assert report.evaluated is False

    def test_evaluated_with_failures(self):
        report = BackupReport(
            backed_up=False,
            diagnostics=[
                Diagnostic(code=DiagnosticCode.NO_REMOTES, severity=Severity.ERROR, message="no remotes")
            ],
        )
        assert report.evaluated is True


class TestCheckResult:
    def test_counts_outcomes(self):
        result = CheckResult(
            repos=[
                RepoCheck(path=Path("/a"), backed_up=True, evaluated=True),
                RepoCheck(path=Path("/b"), backed_up=False, evaluated=True),
                RepoCheck(path=Path("/c"), backed_up=False, evaluated=False),
                RepoCheck(path=Path("/d"), error_message="boom"),
            ],
            total_checked=4,
        )
        assert result.passed == 1
        assert result.failed == 1
        assert result.skipped == 1
        assert result.errors == 1

    def test_empty_result(self):
        result = CheckResult()
        assert result.total_checked == 0
        assert result.passed == result.failed == result.skipped == result.errors == 0


class TestConfig:
    def test_star_and_unstar(self, tmp_path):
        config = Config(device_id="abc", hub="default")
        config.star("code", tmp_path)
        assert config.device.starred == {"code": str(tmp_path)}
        assert config.starred_paths() == [tmp_path.resolve()]
        assert config.unstar("code") is True
        assert config.unstar("code") is False
        assert config.starred_paths() == []

    def test_starred_paths_expand_home(self):
        config = Config(device_id="abc", hub="default")
        config.star("home", Path("~"))
        assert config.starred_paths() == [Path.home().resolve()]
