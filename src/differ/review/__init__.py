"""Review comments, the comment queue, and viewed-file tracking."""

from differ.review.models import ReviewComment
from differ.review.queue import CommentQueue
from differ.review.viewed import ViewedTracker, fingerprint

__all__ = [
    "CommentQueue",
    "ReviewComment",
    "ViewedTracker",
    "fingerprint",
]
