"""Agent-facing MCP relay for queued review comments."""

from differ.relay.server import NO_COMMENTS, CommentRelay, RelayWorker

__all__ = [
    "NO_COMMENTS",
    "CommentRelay",
    "RelayWorker",
]
