"""Data models for references and tree-to-tree diffs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class RefKind(str, Enum):
    BRANCH = "branch"
    TAG = "tag"
    WORKTREE = "worktree"  # not produced by list_references


class LineType(str, Enum):
    ADD = "add"
    DELETE = "delete"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True)
class Repository:
    """Handle on a discovered repository. Holds no open resources."""

    git_dir: Path
    work_tree: Optional[Path] = None  # None for bare repositories


@dataclass(frozen=True)
class Reference:
    """A named pointer into revision history."""

    name: str
    kind: RefKind


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single line inside a hunk."""

    line_type: LineType
    content: str
    old_num: Optional[int] = None
    new_num: Optional[int] = None


@dataclass(frozen=True)
class DiffHunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: Tuple[DiffLine, ...] = ()


@dataclass(frozen=True)
class DiffFile:
    """One changed path between the two trees."""

    path: str
    status: FileStatus = FileStatus.MODIFIED
    old_path: Optional[str] = None  # set on renames only
    hunks: Tuple[DiffHunk, ...] = ()

    def iter_lines(self):
        for hunk in self.hunks:
            yield from hunk.lines


@dataclass(frozen=True)
class DiffResult:
    """Outcome of comparing two references, in git's enumeration order."""

    base_ref: str
    compare_ref: str
    files: Tuple[DiffFile, ...] = ()

    def find_file(self, path: str) -> Optional[DiffFile]:
        """Return the file entry whose new or old path equals *path*."""
        for f in self.files:
            if f.path == path or f.old_path == path:
                return f
        return None
