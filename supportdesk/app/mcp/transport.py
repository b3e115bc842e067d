"""SSE session transport for the MCP tool registry.

Clients open ``GET /sse`` and receive an ``endpoint`` event naming the URL
(``/messages?sessionId=<id>``) where follow-up messages must be posted. Each
post is answered in its own HTTP response; the event stream only carries the
endpoint event and keepalives until either side hangs up.

Lifecycle per session: CONNECTING → OPEN → CLOSED. Closing is idempotent so
the stream's ``finally`` block and the response background task can both
call it safely.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from supportdesk.app.mcp.errors import UnknownSessionError
from supportdesk.app.mcp.registry import ToolRegistry
from supportdesk.app.mcp.server import Reply, dispatch_message
from supportdesk.app.mcp.sessions import Session, SessionState, SessionStore

logger = logging.getLogger("supportdesk.sessions")

DEFAULT_KEEPALIVE_SECONDS = 15.0

DisconnectProbe = Callable[[], Awaitable[bool]]


def format_sse(event: str, data: str) -> str:
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


class StreamingTransport:
    def __init__(
        self,
        registry: ToolRegistry,
        store: Optional[SessionStore] = None,
        *,
        message_path: str = "/messages",
        server_info: Optional[Dict[str, str]] = None,
        keepalive_seconds: float = DEFAULT_KEEPALIVE_SECONDS,
    ) -> None:
        self.registry = registry
        self.store = store if store is not None else SessionStore()
        self.message_path = message_path
        self.server_info = server_info or {}
        self.keepalive_seconds = keepalive_seconds

    def endpoint_for(self, session: Session) -> str:
        return f"{self.message_path}?sessionId={session.id}"

    def connect(self) -> Session:
        """Open a new session; its handle is the event that wakes the stream on close."""
        session = self.store.create(asyncio.Event())
        session.state = SessionState.OPEN
        logger.info("[SSE] New connection established: %s", session.id)
        return session

    def close(self, session_id: str) -> bool:
        """Close and forget a session. Returns False if it was already gone."""
        session = self.store.remove(session_id)
        if session is None or session.state is SessionState.CLOSED:
            return False
        session.state = SessionState.CLOSED
        session.handle.set()
        logger.info("[SSE] Session closed: %s", session_id)
        return True

    def close_all(self) -> int:
        return sum(1 for session_id in self.store.ids() if self.close(session_id))

    def active_sessions(self) -> int:
        return self.store.count()

    async def event_stream(
        self,
        session: Session,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> AsyncIterator[str]:
        """Yield SSE frames for ``session`` until it closes; always cleans up."""
        closed: asyncio.Event = session.handle
        try:
            yield format_sse("endpoint", self.endpoint_for(session))
            while session.is_open:
                try:
                    await asyncio.wait_for(closed.wait(), timeout=self.keepalive_seconds)
                except asyncio.TimeoutError:
                    if is_disconnected is not None and await is_disconnected():
                        break
                    yield ": keepalive\n\n"
        finally:
            self.close(session.id)

    def require_session(self, session_id: Optional[str]) -> Session:
        session = self.store.get(session_id)
        if session is None or not session.is_open:
            raise UnknownSessionError(session_id)
        return session

    async def handle_message(self, session_id: Optional[str], message: Any) -> Reply:
        """Dispatch a posted message for a live session; never opens one implicitly."""
        session = self.require_session(session_id)
        logger.info("[Message] Received for session: %s", session.id)
        return await dispatch_message(self.registry, message, server_info=self.server_info)
