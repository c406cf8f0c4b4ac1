"""Shared test fixtures: sample diffs and temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    """Run git in *repo* and return stdout."""
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout


def commit_all(repo: Path, message: str) -> None:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)


@pytest.fixture
def sample_diff_modified() -> str:
    """Two hunks in one file, with context, removals and additions."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -1,3 +1,4 @@
         import os
        -import sys
        +import json
        +import logging

        @@ -10,2 +11,2 @@ def main():
        -    return 1
        +    return 0
             # end
    """)


@pytest.fixture
def sample_diff_added() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/old.py b/old.py
        deleted file mode 100644
        index abc1234..0000000
        --- a/old.py
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -line one
        -line two
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        index 0000000..abc1234
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A diff with a renamed and slightly edited file."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_pure_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/a.txt b/b.txt
        similarity index 100%
        rename from a.txt
        rename to b.txt
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """A diff with only file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_copy() -> str:
    return textwrap.dedent("""\
        diff --git a/base.cfg b/copy.cfg
        similarity index 90%
        copy from base.cfg
        copy to copy.cfg
        index abc1234..def5678 100644
        --- a/base.cfg
        +++ b/copy.cfg
        @@ -1 +1 @@
        -a = 1
        +a = 2
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/test.txt b/test.txt
        index b6fc4c6..ce01362 100644
        --- a/test.txt
        +++ b/test.txt
        @@ -1 +1,2 @@
        -hello
        \\ No newline at end of file
        +hello
        +world
    """)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """A repository whose ``main`` branch holds test.txt containing "hello"."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@test.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "test.txt").write_text("hello")
    commit_all(repo, "initial")
    return repo


@pytest.fixture
def feature_branch(tmp_git_repo: Path) -> Path:
    """Check out a ``feature`` branch off ``main``; tests commit onto it."""
    git(tmp_git_repo, "checkout", "-q", "-b", "feature")
    return tmp_git_repo
