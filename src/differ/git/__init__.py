"""Git interface layer: adapter, diff parsing, models."""

from differ.git.adapter import (
    DiffComputeError,
    GitError,
    NotFoundError,
    ResolutionError,
    discover_repo,
    generate_diff,
    list_references,
    resolve_tree,
)
from differ.git.diff_parser import DiffParser
from differ.git.models import (
    DiffFile,
    DiffHunk,
    DiffLine,
    DiffResult,
    FileStatus,
    LineType,
    Reference,
    RefKind,
    Repository,
)

__all__ = [
    "DiffComputeError",
    "DiffFile",
    "DiffHunk",
    "DiffLine",
    "DiffParser",
    "DiffResult",
    "FileStatus",
    "GitError",
    "LineType",
    "NotFoundError",
    "RefKind",
    "Reference",
    "Repository",
    "ResolutionError",
    "discover_repo",
    "generate_diff",
    "list_references",
    "resolve_tree",
]
