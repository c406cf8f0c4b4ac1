"""Session surface: the operations a front end calls.

A ReviewSession owns the comment queue and the currently opened project
path. Each field has its own lock, so queue traffic from the relay never
waits on repository operations and vice versa.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

from differ.git.adapter import (
    DEFAULT_TIMEOUT,
    NotFoundError,
    discover_repo,
    generate_diff,
    list_references,
)
from differ.git.models import DiffResult, LineType, Reference, Repository
from differ.review.queue import CommentQueue

logger = logging.getLogger(__name__)


class ReviewSession:
    def __init__(self, queue: Optional[CommentQueue] = None, *, git_timeout: int = DEFAULT_TIMEOUT) -> None:
        self.queue = queue if queue is not None else CommentQueue()
        self.git_timeout = git_timeout
        self._path_lock = threading.Lock()
        self._repo_path: Optional[str] = None

    @property
    def repo_path(self) -> Optional[str]:
        with self._path_lock:
            return self._repo_path

    def _current_repo(self) -> Repository:
        with self._path_lock:
            path = self._repo_path
        if path is None:
            raise NotFoundError("No repository opened")
        return discover_repo(path, timeout=self.git_timeout)

    def open(self, path: Union[str, Path]) -> List[Reference]:
        """Discover the repository at *path*, list its references, remember it."""
        repo = discover_repo(path, timeout=self.git_timeout)
        refs = list_references(repo, timeout=self.git_timeout)
        with self._path_lock:
            self._repo_path = str(path)
        logger.info("opened %s (%d references)", path, len(refs))
        return refs

    def list_references(self) -> List[Reference]:
        return list_references(self._current_repo(), timeout=self.git_timeout)

    def diff(self, base: str, compare: str) -> DiffResult:
        return generate_diff(self._current_repo(), base, compare, timeout=self.git_timeout)

    def submit_comment(
        self,
        file: str,
        start_line: int,
        end_line: int,
        code_context: str,
        comment: str,
    ) -> int:
        return self.queue.submit(file, start_line, end_line, code_context, comment)

    def queue_length(self) -> int:
        return self.queue.pending_count()


def code_context(diff: DiffResult, file: str, start_line: int, end_line: int) -> str:
    """Collect the diff lines of *file* inside the inclusive range.

    Lines are matched on their new-side number; deleted lines, which only
    have an old-side number, match on that instead.
    """
    diff_file = diff.find_file(file)
    if diff_file is None:
        return ""
    picked: List[str] = []
    for line in diff_file.iter_lines():
        num = line.old_num if line.line_type == LineType.DELETE else line.new_num
        if num is not None and start_line <= num <= end_line:
            picked.append(line.content)
    return "\n".join(picked)
