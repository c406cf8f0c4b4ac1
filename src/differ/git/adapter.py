"""Git subprocess wrapper: repository discovery, references, tree diffs."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from differ.git.diff_parser import DiffParser
from differ.git.models import DiffResult, Reference, RefKind, Repository

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

_BRANCH_PREFIX = "refs/heads/"
_TAG_PREFIX = "refs/tags/"


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class NotFoundError(GitError):
    """No repository at or above a path, or no repository opened yet."""


class ResolutionError(GitError):
    """A named reference could not be resolved to a tree."""

    def __init__(self, side: str, name: str, message: str) -> None:
        super().__init__(message)
        self.side = side  # "base" or "compare"
        self.name = name


class DiffComputeError(GitError):
    """The tree-to-tree comparison itself failed."""


def _run_git(
    args: list[str],
    cwd: Optional[Path] = None,
    *,
    repo: Optional[Repository] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> bytes:
    """Run a git command and return raw stdout. Raises GitError on failure."""
    cmd = ["git"]
    if repo is not None:
        cmd.append(f"--git-dir={repo.git_dir}")
    cmd.extend(args)
    logger.debug("running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")
    except OSError as exc:
        raise GitError(f"failed to run git: {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"git error: {stderr or f'exit status {result.returncode}'}")
    return result.stdout


def discover_repo(path: Union[str, Path], *, timeout: int = DEFAULT_TIMEOUT) -> Repository:
    """Walk upward from *path* to the enclosing repository."""
    start = Path(path).expanduser()
    try:
        if start.is_file():
            start = start.parent
        if not start.is_dir():
            raise NotFoundError(f"Failed to discover repo: {path} does not exist")
    except OSError as exc:
        raise NotFoundError(f"Failed to discover repo: {exc}") from exc

    try:
        git_dir = _run_git(["rev-parse", "--absolute-git-dir"], cwd=start, timeout=timeout)
    except GitError as exc:
        raise NotFoundError(f"Failed to discover repo: {exc}") from exc

    repo = Repository(git_dir=Path(git_dir.decode("utf-8").strip()))
    try:
        top = _run_git(["rev-parse", "--show-toplevel"], cwd=start, timeout=timeout)
    except GitError:
        return repo  # bare repository
    return Repository(git_dir=repo.git_dir, work_tree=Path(top.decode("utf-8").strip()))


def _for_each_ref(repo: Repository, pattern: str, timeout: int) -> List[bytes]:
    out = _run_git(
        ["for-each-ref", "--format=%(refname)", pattern],
        repo=repo,
        timeout=timeout,
    )
    return [line for line in out.split(b"\n") if line]


def list_references(repo: Repository, *, timeout: int = DEFAULT_TIMEOUT) -> List[Reference]:
    """Return local branches followed by tags, in git's enumeration order."""
    refs: List[Reference] = []

    try:
        branches = _for_each_ref(repo, "refs/heads", timeout)
    except GitError as exc:
        raise GitError(f"Failed to list branches: {exc}") from exc
    for raw in branches:
        try:
            name = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            # One unreadable branch aborts the whole listing
            raise GitError(f"Invalid branch name: {exc}") from exc
        refs.append(Reference(name=name[len(_BRANCH_PREFIX):], kind=RefKind.BRANCH))

    try:
        tags = _for_each_ref(repo, "refs/tags", timeout)
    except GitError as exc:
        raise GitError(f"Failed to list tags: {exc}") from exc
    for raw in tags:
        try:
            name = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("skipping tag with undecodable name %r", raw)
            continue
        refs.append(Reference(name=name[len(_TAG_PREFIX):], kind=RefKind.TAG))

    return refs


def resolve_tree(repo: Repository, name: str, side: str, *, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Resolve branch *name* to the id of its tree."""
    refname = f"{_BRANCH_PREFIX}{name}"
    try:
        _run_git(["rev-parse", "--verify", "--quiet", f"{refname}^{{object}}"], repo=repo, timeout=timeout)
    except GitError as exc:
        raise ResolutionError(side, name, f"Failed to resolve '{name}': {exc}") from exc
    try:
        out = _run_git(["rev-parse", "--verify", "--quiet", f"{refname}^{{tree}}"], repo=repo, timeout=timeout)
    except GitError as exc:
        raise ResolutionError(side, name, f"Failed to get tree for '{name}': {exc}") from exc
    return out.decode("ascii").strip()


def get_tree_diff(repo: Repository, base_tree: str, compare_tree: str, *, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    """Return the raw patch between two trees with default rename detection."""
    return _run_git(
        [
            "-c", "core.quotepath=false",
            "diff",
            "--no-color",
            "--no-ext-diff",
            "--no-textconv",
            "-M",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            base_tree,
            compare_tree,
        ],
        repo=repo,
        timeout=timeout,
    )


def generate_diff(repo: Repository, base: str, compare: str, *, timeout: int = DEFAULT_TIMEOUT) -> DiffResult:
    """Compare branches *base* and *compare* and return a structured diff."""
    base_tree = resolve_tree(repo, base, "base", timeout=timeout)
    compare_tree = resolve_tree(repo, compare, "compare", timeout=timeout)

    try:
        patch = get_tree_diff(repo, base_tree, compare_tree, timeout=timeout)
    except GitError as exc:
        raise DiffComputeError(f"Failed to generate diff: {exc}") from exc

    files = tuple(DiffParser(patch).parse())
    logger.debug("diff %s..%s: %d file(s)", base, compare, len(files))
    return DiffResult(base_ref=base, compare_ref=compare, files=files)
