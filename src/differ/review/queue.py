"""Thread-safe FIFO of pending review comments."""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from typing import Deque, Optional

from differ.review.models import ReviewComment

logger = logging.getLogger(__name__)


class CommentQueue:
    """Ordered buffer of comments waiting to be picked up by an agent.

    Ids start at 1 and are never reused, even after the comment has been
    dequeued. Every method holds the lock for its whole body, so a comment
    is handed to exactly one caller of :meth:`dequeue_next`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Deque[ReviewComment] = deque()
        self._ids = itertools.count(1)

    def submit(
        self,
        file: str,
        start_line: int,
        end_line: int,
        code_context: str,
        comment: str,
    ) -> int:
        """Append a comment and return its freshly assigned id."""
        with self._lock:
            comment_id = next(self._ids)
            self._pending.append(
                ReviewComment(
                    id=comment_id,
                    file=file,
                    start_line=start_line,
                    end_line=end_line,
                    code_context=code_context,
                    comment=comment,
                )
            )
        logger.debug("queued comment %d for %s:%s-%s", comment_id, file, start_line, end_line)
        return comment_id

    def dequeue_next(self) -> Optional[ReviewComment]:
        """Remove and return the oldest pending comment, or None."""
        with self._lock:
            if not self._pending:
                return None
            return self._pending.popleft()

    def pending_count(self) -> int:
        """Snapshot of the number of pending comments. For reporting only."""
        with self._lock:
            return len(self._pending)

    def __len__(self) -> int:
        return self.pending_count()
