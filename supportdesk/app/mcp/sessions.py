"""Live streaming sessions, keyed by an opaque id."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger("supportdesk.sessions")


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class Session:
    id: str
    handle: Any
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: SessionState = SessionState.CONNECTING

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN


class SessionStore:
    """
    Owns every Session. Only the streaming transport should call into it.

    Access is serialized with a lock: the event loop is the normal caller,
    but worker threads (sync routes, test clients) may touch it too.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    def create(self, handle: Any) -> Session:
        with self._lock:
            session_id = self._new_id()
            while session_id in self._sessions:
                session_id = self._new_id()
            session = Session(id=session_id, handle=handle)
            self._sessions[session_id] = session
        logger.debug("Session %s created", session_id)
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)
