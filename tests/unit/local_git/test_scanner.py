"""Unit tests for RepositoryScanner discovery."""

from pathlib import Path
from unittest.mock import patch

import pytest

from workboard.local_git import (
    LocalBranchStatus,
    RepositoryNotFoundError,
    RepositoryScanner,
)


def make_clone(root: Path, name: str) -> Path:
    path = root / name
    (path / ".git").mkdir(parents=True)
    return path


@pytest.mark.unit
class TestFindRepositories:
    """Tests for locating clones under the scan roots."""

    def test_only_direct_children_with_git(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "api")
        make_clone(tmp_path, ".dotfiles")
        (tmp_path / "notes").mkdir()
        make_clone(tmp_path / "nested", "deep")

        scanner = RepositoryScanner([tmp_path])

        assert [p.name for p in scanner.find_repositories()] == ["api"]

    def test_missing_root_is_skipped(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "api")
        scanner = RepositoryScanner([tmp_path / "missing", tmp_path])

        assert [p.name for p in scanner.find_repositories()] == ["api"]

    def test_same_root_twice_is_deduplicated(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "api")
        scanner = RepositoryScanner([tmp_path, tmp_path])

        assert len(scanner.find_repositories()) == 1

    def test_exact_match_wins_over_partial(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "web-app")
        exact = make_clone(tmp_path, "app")

        assert RepositoryScanner([tmp_path]).find_repository_by_name("org/APP") == exact

    def test_partial_match(self, tmp_path: Path) -> None:
        clone = make_clone(tmp_path, "org-service-fork")

        assert RepositoryScanner([tmp_path]).find_repository_by_name("service") == clone

    def test_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(RepositoryNotFoundError):
            RepositoryScanner([tmp_path]).find_repository_by_name("org/api")


@pytest.mark.unit
class TestScan:
    """Tests for branch scans across clones."""

    async def test_first_clone_wins_on_duplicate_branch(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "a")
        make_clone(tmp_path, "b")
        scanner = RepositoryScanner([tmp_path])

        def scan(path: Path, keys: list[str] | None) -> list[LocalBranchStatus]:
            return [
                LocalBranchStatus(branch="feature/ABC-1_fix", repository=path.name),
                LocalBranchStatus(branch=f"feature/ABC-2_{path.name}", repository=path.name),
            ]

        with patch.object(RepositoryScanner, "_scan_repository", side_effect=scan):
            branches = await scanner.scan_branches_for_keys(["ABC-1", "ABC-2"])

        assert [(b.branch, b.repository) for b in branches] == [
            ("feature/ABC-1_fix", "a"),
            ("feature/ABC-2_a", "a"),
            ("feature/ABC-2_b", "b"),
        ]

    async def test_empty_keys_skip_scanning(self, tmp_path: Path) -> None:
        make_clone(tmp_path, "a")
        with patch.object(RepositoryScanner, "_scan_repository") as mock_scan:
            assert await RepositoryScanner([tmp_path]).scan_branches_for_keys(["", ""]) == []
            mock_scan.assert_not_called()
