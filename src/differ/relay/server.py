"""MCP tool relay: lets an external agent pull review comments over HTTP.

The relay exposes two parameterless tools on a stateless streamable-HTTP
endpoint. It only registers tool handlers, so the advertised capabilities
are tools and nothing else.
"""

from __future__ import annotations

import contextlib
import json
import logging
import threading
from typing import Any, AsyncIterator, Dict, List, Optional

import mcp.types as types
import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from differ import __version__
from differ.output.json_report import render_comment
from differ.review.queue import CommentQueue

logger = logging.getLogger(__name__)

SERVER_NAME = "differ"

NO_COMMENTS = "No comments pending."

INSTRUCTIONS = (
    "Differ review tool. Use get_next_comment to receive code review feedback. "
    "Each comment includes a file path, line range, code context, and the reviewer's instruction. "
    "Comments are removed from the queue as they are delivered, oldest first. "
    "Process comments one at a time: act on a comment before asking for the next one."
)

GET_NEXT_COMMENT = "get_next_comment"
GET_QUEUE_STATUS = "get_queue_status"

TOOL_DESCRIPTIONS = {
    GET_NEXT_COMMENT: (
        "Get the next review comment from the queue. Returns the comment with file path, "
        "line range, code context, and the reviewer's feedback. Each call permanently removes "
        "exactly one comment, in the order the reviewer submitted them, so handle each comment "
        "before calling this tool again instead of fetching several up front. "
        f"Returns '{NO_COMMENTS}' if the queue is empty."
    ),
    GET_QUEUE_STATUS: (
        "Get the number of pending review comments in the queue as {\"pending\": N}. "
        "Does not remove any comment."
    ),
}

_EMPTY_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}


class CommentRelay:
    """Tool handlers over a shared CommentQueue, plus the MCP server wiring."""

    def __init__(self, queue: CommentQueue) -> None:
        self.queue = queue
        self.server: Server = Server(SERVER_NAME, version=__version__, instructions=INSTRUCTIONS)
        self.server.list_tools()(self.list_tools)
        self.server.call_tool()(self.call_tool)

    # -- tools ------------------------------------------------------------

    def get_next_comment(self) -> str:
        comment = self.queue.dequeue_next()
        if comment is None:
            return NO_COMMENTS
        logger.info("delivering comment %d (%s:%d-%d)", comment.id, comment.file, comment.start_line, comment.end_line)
        return render_comment(comment)

    def get_queue_status(self) -> str:
        return json.dumps({"pending": self.queue.pending_count()})

    # -- MCP handlers -----------------------------------------------------

    async def list_tools(self) -> List[types.Tool]:
        return [
            types.Tool(name=name, description=description, inputSchema=_EMPTY_SCHEMA)
            for name, description in TOOL_DESCRIPTIONS.items()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        if name == GET_NEXT_COMMENT:
            text = self.get_next_comment()
        elif name == GET_QUEUE_STATUS:
            text = self.get_queue_status()
        else:
            raise ValueError(f"Unknown tool: {name}")
        return [types.TextContent(type="text", text=text)]

    # -- transport --------------------------------------------------------

    def asgi_app(self, path: str = "/mcp") -> Starlette:
        """Build the starlette app serving the stateless MCP endpoint at *path*."""
        manager = StreamableHTTPSessionManager(
            app=self.server,
            event_store=None,
            json_response=True,
            stateless=True,
        )

        @contextlib.asynccontextmanager
        async def lifespan(app: Starlette) -> AsyncIterator[None]:
            async with manager.run():
                logger.debug("MCP session manager started")
                yield

        return Starlette(
            routes=[Route(path, endpoint=_StreamableHTTPEndpoint(manager))],
            lifespan=lifespan,
        )


class _StreamableHTTPEndpoint:
    """Raw ASGI endpoint so that starlette passes scope/receive/send through."""

    def __init__(self, manager: StreamableHTTPSessionManager) -> None:
        self._manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._manager.handle_request(scope, receive, send)


class RelayWorker(threading.Thread):
    """Background thread running the relay for the rest of the process.

    Failures, including a port that cannot be bound, are logged and end only
    this thread.
    """

    def __init__(
        self,
        queue: CommentQueue,
        *,
        host: str = "127.0.0.1",
        port: int = 3100,
        path: str = "/mcp",
    ) -> None:
        super().__init__(name="differ-relay", daemon=True)
        self.relay = CommentRelay(queue)
        self.url = f"http://{host}:{port}{path}"
        config = uvicorn.Config(
            self.relay.asgi_app(path),
            host=host,
            port=port,
            log_config=None,
            lifespan="on",
        )
        self._server = uvicorn.Server(config)

    @property
    def started(self) -> bool:
        return self._server.started

    def run(self) -> None:
        logger.info("MCP relay starting on %s", self.url)
        try:
            self._server.run()
        except SystemExit as exc:
            # uvicorn exits when it cannot bind
            logger.error("MCP relay on %s exited (status %s)", self.url, exc.code)
        except Exception:
            logger.exception("MCP relay on %s failed", self.url)
        else:
            logger.info("MCP relay on %s stopped", self.url)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Ask uvicorn to shut down and wait for the thread."""
        self._server.should_exit = True
        if self.is_alive():
            self.join(timeout)
