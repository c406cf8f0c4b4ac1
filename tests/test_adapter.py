"""Integration tests for repository discovery, references, and tree diffs."""

from pathlib import Path

import pytest

from differ.git.adapter import (
    DiffComputeError,
    NotFoundError,
    ResolutionError,
    discover_repo,
    generate_diff,
    list_references,
)
from differ.git.models import FileStatus, LineType, RefKind

from conftest import commit_all, git


class TestDiscover:
    def test_discover_repo(self, tmp_git_repo: Path):
        repo = discover_repo(tmp_git_repo)
        assert repo.work_tree is not None
        assert repo.work_tree.resolve() == tmp_git_repo.resolve()
        assert repo.git_dir.name == ".git"

    def test_discover_from_subdirectory(self, tmp_git_repo: Path):
        sub = tmp_git_repo / "a" / "b"
        sub.mkdir(parents=True)
        repo = discover_repo(sub)
        assert repo.work_tree.resolve() == tmp_git_repo.resolve()

    def test_discover_from_file(self, tmp_git_repo: Path):
        repo = discover_repo(tmp_git_repo / "test.txt")
        assert repo.work_tree.resolve() == tmp_git_repo.resolve()

    def test_discover_nonexistent(self):
        with pytest.raises(NotFoundError):
            discover_repo("/nonexistent/path")

    def test_discover_outside_repo(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(NotFoundError):
            discover_repo(plain)


class TestListReferences:
    def test_branches_and_tags(self, tmp_git_repo: Path):
        git(tmp_git_repo, "branch", "feature")
        git(tmp_git_repo, "tag", "v1.0")
        refs = list_references(discover_repo(tmp_git_repo))

        branches = {r.name for r in refs if r.kind == RefKind.BRANCH}
        tags = {r.name for r in refs if r.kind == RefKind.TAG}
        assert branches == {"main", "feature"}
        assert tags == {"v1.0"}

    def test_branches_before_tags(self, tmp_git_repo: Path):
        git(tmp_git_repo, "tag", "a-tag")
        kinds = [r.kind for r in list_references(discover_repo(tmp_git_repo))]
        assert kinds == [RefKind.BRANCH, RefKind.TAG]

    def test_nested_branch_name(self, tmp_git_repo: Path):
        git(tmp_git_repo, "branch", "user/topic")
        names = [r.name for r in list_references(discover_repo(tmp_git_repo))]
        assert "user/topic" in names

    def test_no_worktree_refs(self, tmp_git_repo: Path):
        refs = list_references(discover_repo(tmp_git_repo))
        assert all(r.kind != RefKind.WORKTREE for r in refs)


class TestGenerateDiff:
    def test_identical_trees(self, feature_branch: Path):
        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        assert result.files == ()

    def test_modified_file(self, feature_branch: Path):
        (feature_branch / "test.txt").write_text("hello\nworld\n")
        commit_all(feature_branch, "modify")

        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        assert result.base_ref == "main"
        assert result.compare_ref == "feature"
        assert len(result.files) == 1
        f = result.files[0]
        assert f.path == "test.txt"
        assert f.status == FileStatus.MODIFIED
        assert f.hunks
        assert any(line.line_type == LineType.ADD for line in f.iter_lines())

    def test_added_file(self, feature_branch: Path):
        (feature_branch / "new.txt").write_text("new file\n")
        commit_all(feature_branch, "add file")

        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        new_file = result.find_file("new.txt")
        assert new_file is not None
        assert new_file.status == FileStatus.ADDED
        assert new_file.old_path is None
        assert new_file.hunks[0].lines[0].content == "new file"
        assert new_file.hunks[0].lines[0].new_num == 1

    def test_deleted_file(self, feature_branch: Path):
        git(feature_branch, "rm", "-q", "test.txt")
        git(feature_branch, "commit", "-q", "-m", "delete file")

        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        deleted = result.find_file("test.txt")
        assert deleted is not None
        assert deleted.status == FileStatus.DELETED

    def test_renamed_file(self, feature_branch: Path):
        body = "".join(f"line {i}\n" for i in range(20))
        (feature_branch / "big.txt").write_text(body)
        commit_all(feature_branch, "add big")
        git(feature_branch, "branch", "-f", "base")
        git(feature_branch, "mv", "big.txt", "moved.txt")
        commit_all(feature_branch, "rename")

        result = generate_diff(discover_repo(feature_branch), "base", "feature")
        (f,) = result.files
        assert f.status == FileStatus.RENAMED
        assert f.path == "moved.txt"
        assert f.old_path == "big.txt"
        assert f.hunks == ()

    def test_mode_change_keeps_entry(self, feature_branch: Path):
        git(feature_branch, "update-index", "--chmod=+x", "test.txt")
        git(feature_branch, "commit", "-q", "-m", "chmod")

        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        (f,) = result.files
        assert f.status == FileStatus.MODIFIED
        assert f.hunks == ()

    def test_binary_file_keeps_entry(self, feature_branch: Path):
        (feature_branch / "blob.bin").write_bytes(b"\x00\x01\x02\xff" * 16)
        commit_all(feature_branch, "binary")

        result = generate_diff(discover_repo(feature_branch), "main", "feature")
        blob = result.find_file("blob.bin")
        assert blob is not None
        assert blob.status == FileStatus.ADDED
        assert blob.hunks == ()

    def test_unknown_base_branch(self, feature_branch: Path):
        with pytest.raises(ResolutionError) as info:
            generate_diff(discover_repo(feature_branch), "missing", "feature")
        assert info.value.side == "base"
        assert info.value.name == "missing"
        assert "missing" in str(info.value)

    def test_unknown_compare_branch(self, feature_branch: Path):
        with pytest.raises(ResolutionError) as info:
            generate_diff(discover_repo(feature_branch), "main", "nope")
        assert info.value.side == "compare"

    def test_tags_are_not_branches(self, tmp_git_repo: Path):
        git(tmp_git_repo, "tag", "v1.0")
        with pytest.raises(ResolutionError):
            generate_diff(discover_repo(tmp_git_repo), "v1.0", "main")

    def test_compute_error_is_distinct(self):
        assert not issubclass(DiffComputeError, ResolutionError)
