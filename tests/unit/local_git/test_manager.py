"""Unit tests for LocalGitManager."""

import subprocess
from collections.abc import Callable
from unittest.mock import patch

import pytest

from workboard.local_git import LocalGitManager


@pytest.fixture
def manager() -> LocalGitManager:
    return LocalGitManager("/tmp/clones/repo")


def fake_git(
    current: str = "main",
    existing: set[str] | None = None,
    failing: set[str] | None = None,
    outputs: dict[str, str] | None = None,
) -> Callable[..., str]:
    """Build a _run_git stand-in answering like git would for a few commands."""
    existing = existing if existing is not None else set()
    failing = failing or set()
    outputs = outputs or {}

    def run(*args: str) -> str:
        if args[0] in failing:
            raise subprocess.CalledProcessError(1, "git", stderr=f"{args[0]} failed")
        if args[:2] == ("rev-parse", "--abbrev-ref"):
            return current
        if args[0] == "show-ref":
            if args[-1] not in existing:
                raise subprocess.CalledProcessError(1, "git")
            return ""
        return outputs.get(args[0], "")

    return run


@pytest.mark.unit
class TestUpstreamStatus:
    """Tests for batched ahead/behind parsing."""

    def test_parses_track_info(self, manager: LocalGitManager) -> None:
        output = "\n".join(
            [
                "main\torigin/main\t[ahead 2, behind 1]",
                "feature/ABC-1_fix\t\t",
                "old\torigin/old\t[gone]",
                "synced\torigin/synced\t",
            ]
        )
        with patch.object(manager, "_run_git", return_value=output):
            statuses = manager.branch_upstream_status()

        assert statuses["main"].ahead == 2
        assert statuses["main"].behind == 1
        assert statuses["main"].has_upstream
        assert not statuses["feature/ABC-1_fix"].has_upstream
        assert not statuses["old"].has_upstream
        assert statuses["synced"].has_upstream
        assert statuses["synced"].ahead == 0

    def test_single_invocation_for_many_branches(self, manager: LocalGitManager) -> None:
        """Requested branches are passed as refs to one for-each-ref call."""
        with patch.object(manager, "_run_git", return_value="") as mock_git:
            manager.branch_upstream_status(["a", "b"])

        mock_git.assert_called_once()
        args = mock_git.call_args.args
        assert args[0] == "for-each-ref"
        assert "refs/heads/a" in args
        assert "refs/heads/b" in args

    def test_deeper_refs_filtered_out(self, manager: LocalGitManager) -> None:
        output = "a\torigin/a\t\na/b\torigin/a/b\t[ahead 1]"
        with patch.object(manager, "_run_git", return_value=output):
            statuses = manager.branch_upstream_status(["a"])

        assert list(statuses) == ["a"]

    def test_last_commit_subjects(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", return_value="a\tFix the thing\nb\t"):
            assert manager.last_commit_subjects(["a", "b"]) == {"a": "Fix the thing", "b": ""}


@pytest.mark.unit
class TestBranchDetails:
    """Tests for branch_details."""

    def test_combines_batched_reads(self, manager: LocalGitManager) -> None:
        def run(*args: str) -> str:
            if args[0] == "remote":
                return "git@github.com:org/repo.git"
            if "%(refname:short)\t%(contents:subject)" in args[1]:
                return "feature/ABC-1_fix\tWIP"
            return "feature/ABC-1_fix\torigin/feature/ABC-1_fix\t[ahead 3]"

        with patch.object(manager, "_run_git", side_effect=run):
            details = manager.branch_details(["feature/ABC-1_fix"])

        assert len(details) == 1
        branch = details[0]
        assert branch.repository == "repo"
        assert branch.remote_origin == "git@github.com:org/repo.git"
        assert branch.has_remote
        assert branch.ahead == 3
        assert branch.is_ahead
        assert branch.last_commit == "WIP"

    def test_no_branches(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git") as mock_git:
            assert manager.branch_details([]) == []
            mock_git.assert_not_called()


@pytest.mark.unit
class TestBranchStatus:
    """Tests for single-branch status."""

    def test_missing_branch(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", side_effect=fake_git()):
            status = manager.branch_status("feature/ABC-1_fix")

        assert not status.exists
        assert status.repository == "repo"
        assert status.last_checked is not None

    def test_branch_without_remote(self, manager: LocalGitManager) -> None:
        with patch.object(
            manager, "_run_git", side_effect=fake_git(existing={"refs/heads/b"})
        ):
            status = manager.branch_status("b")

        assert status.exists
        assert not status.has_remote
        assert not status.is_up_to_date

    def test_ahead_and_behind(self, manager: LocalGitManager) -> None:
        run = fake_git(
            existing={"refs/heads/b", "refs/remotes/origin/b"},
            outputs={"rev-list": "2\t1", "log": "abc1234 Fix the thing"},
        )
        with patch.object(manager, "_run_git", side_effect=run):
            status = manager.branch_status("b")

        assert status.exists
        assert status.has_remote
        assert status.ahead == 2
        assert status.behind == 1
        assert not status.is_up_to_date
        assert status.last_commit == "abc1234 Fix the thing"

    def test_up_to_date(self, manager: LocalGitManager) -> None:
        run = fake_git(
            existing={"refs/heads/b", "refs/remotes/origin/b"},
            outputs={"rev-list": "0\t0", "log": "abc1234 Done"},
        )
        with patch.object(manager, "_run_git", side_effect=run):
            assert manager.branch_status("b").is_up_to_date

    def test_git_failure_reports_missing(self, manager: LocalGitManager) -> None:
        run = fake_git(existing={"refs/heads/b", "refs/remotes/origin/b"}, failing={"rev-list"})
        with patch.object(manager, "_run_git", side_effect=run):
            assert not manager.branch_status("b").exists


@pytest.mark.unit
class TestPushPull:
    """Tests for push and pull."""

    def test_push_sets_upstream(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git") as mock_git:
            result = manager.push("feature/ABC-1_fix")

        assert result.success
        mock_git.assert_called_once_with("push", "-u", "origin", "feature/ABC-1_fix")

    def test_push_failure(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git") as mock_git:
            mock_git.side_effect = subprocess.CalledProcessError(1, "git", stderr="rejected")
            result = manager.push("b")

        assert not result.success
        assert "rejected" in result.message

    def test_pull_checked_out_branch(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", side_effect=fake_git(current="b")) as mock_git:
            result = manager.pull("b")

        assert result.success
        mock_git.assert_any_call("pull", "origin", "b")

    def test_pull_other_branch_fast_forwards(self, manager: LocalGitManager) -> None:
        """A branch that is not checked out is updated without touching the work tree."""
        with patch.object(manager, "_run_git", side_effect=fake_git(current="main")) as mock_git:
            result = manager.pull("b")

        assert result.success
        mock_git.assert_any_call("fetch", "origin", "b:b")

    def test_pull_failure(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", side_effect=fake_git(failing={"fetch"})):
            result = manager.pull("b")

        assert not result.success


@pytest.mark.unit
class TestDeleteLocalBranch:
    """Tests for delete_local_branch."""

    def test_deletes_other_branch(self, manager: LocalGitManager) -> None:
        run = fake_git(current="main", existing={"refs/heads/b"})
        with patch.object(manager, "_run_git", side_effect=run) as mock_git:
            result = manager.delete_local_branch("b")

        assert result.success
        mock_git.assert_any_call("branch", "-D", "b")

    def test_missing_branch_counts_as_deleted(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", side_effect=fake_git(current="main")):
            result = manager.delete_local_branch("b")

        assert result.success
        assert result.message == "Branch was already deleted"

    def test_switches_to_default_branch_first(self, manager: LocalGitManager) -> None:
        run = fake_git(
            current="b",
            existing={"refs/heads/b"},
            outputs={"symbolic-ref": "refs/remotes/origin/develop"},
        )
        with patch.object(manager, "_run_git", side_effect=run) as mock_git:
            result = manager.delete_local_branch("b")

        assert result.success
        mock_git.assert_any_call("checkout", "develop")
        mock_git.assert_any_call("branch", "-D", "b")

    def test_cannot_leave_checked_out_branch(self, manager: LocalGitManager) -> None:
        run = fake_git(current="b", existing={"refs/heads/b"}, failing={"checkout", "symbolic-ref"})
        with patch.object(manager, "_run_git", side_effect=run) as mock_git:
            result = manager.delete_local_branch("b")

        assert not result.success
        assert "Cannot delete branch you are currently on" in result.message
        assert ("branch", "-D", "b") not in [c.args for c in mock_git.call_args_list]

    def test_default_branch_detection(self, manager: LocalGitManager) -> None:
        with patch.object(manager, "_run_git", side_effect=fake_git(failing={"symbolic-ref"})):
            assert manager.default_branch() == "main"
        run = fake_git(failing={"symbolic-ref"}, existing={"refs/heads/master"})
        with patch.object(manager, "_run_git", side_effect=run):
            assert manager.default_branch() == "master"
