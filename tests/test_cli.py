"""Tests for the CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from differ.cli import app

from conftest import commit_all, git

runner = CliRunner()


def _modify(repo: Path) -> None:
    (repo / "test.txt").write_text("hello\nworld\n")
    commit_all(repo, "modify")


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "differ" in result.output


class TestInit:
    def test_creates_config(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_git_repo / ".differ.toml").exists()

    def test_refuses_overwrite(self, tmp_git_repo: Path, monkeypatch):
        monkeypatch.chdir(tmp_git_repo)
        (tmp_git_repo / ".differ.toml").write_text("existing")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1


class TestRefs:
    def test_json(self, tmp_git_repo: Path):
        git(tmp_git_repo, "tag", "v1.0")
        result = runner.invoke(app, ["refs", str(tmp_git_repo), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {"name": "main", "refType": "branch"} in data
        assert {"name": "v1.0", "refType": "tag"} in data

    def test_terminal(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["refs", str(tmp_git_repo)])
        assert result.exit_code == 0
        assert "main" in result.output

    def test_not_a_repo(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        plain = tmp_path / "plain"
        plain.mkdir()
        result = runner.invoke(app, ["refs", str(plain)])
        assert result.exit_code == 2


class TestDiff:
    def test_json(self, feature_branch: Path):
        _modify(feature_branch)
        result = runner.invoke(app, ["diff", "main", "feature", "--repo", str(feature_branch), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["baseRef"] == "main"
        assert data["files"][0]["status"] == "modified"
        assert any(line["lineType"] == "add" for line in data["files"][0]["hunks"][0]["lines"])

    def test_terminal(self, feature_branch: Path):
        _modify(feature_branch)
        result = runner.invoke(app, ["diff", "main", "feature", "--repo", str(feature_branch)])
        assert result.exit_code == 0
        assert "test.txt" in result.output
        assert "+world" in result.output

    def test_output_file(self, feature_branch: Path, tmp_path: Path):
        _modify(feature_branch)
        out = tmp_path / "diff.json"
        result = runner.invoke(
            app, ["diff", "main", "feature", "--repo", str(feature_branch), "--output", str(out)]
        )
        assert result.exit_code == 0
        assert json.loads(out.read_text())["compareRef"] == "feature"

    def test_unknown_branch(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["diff", "main", "ghost", "--repo", str(tmp_git_repo)])
        assert result.exit_code == 2
        assert "ghost" in result.output

    def test_bad_format(self, tmp_git_repo: Path):
        result = runner.invoke(app, ["diff", "main", "main", "--repo", str(tmp_git_repo), "--format", "xml"])
        assert result.exit_code == 2

    def test_config_error(self, tmp_git_repo: Path):
        (tmp_git_repo / ".differ.toml").write_text("not [valid")
        result = runner.invoke(app, ["diff", "main", "main", "--repo", str(tmp_git_repo)])
        assert result.exit_code == 2


class TestReview:
    def test_queue_comments_without_relay(self, feature_branch: Path):
        _modify(feature_branch)
        result = runner.invoke(
            app,
            ["review", "main", "feature", "--repo", str(feature_branch), "--no-relay"],
            input="c test.txt 2 explain this line\nv test.txt\ns\nq\n",
        )
        assert result.exit_code == 0
        assert "Queued comment #1 on test.txt:2-2" in result.output
        assert "test.txt: viewed" in result.output
        assert "Pending comments: 1" in result.output
        assert "Viewed: 1/1" in result.output
        assert "never picked up" in result.output

    def test_bad_range_and_unknown_file(self, feature_branch: Path):
        _modify(feature_branch)
        result = runner.invoke(
            app,
            ["review", "main", "feature", "--repo", str(feature_branch), "--no-relay"],
            input="c test.txt x-y nope\nv missing.txt\n",
        )
        assert result.exit_code == 0
        assert "Bad line range" in result.output
        assert "Not in this diff" in result.output
