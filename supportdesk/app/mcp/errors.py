from __future__ import annotations

from supportdesk.app.error_messages import UNKNOWN_SESSION_MESSAGE


class ServiceError(Exception):
    """Domain specific error that can be translated to HTTP responses."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DuplicateToolError(ValueError):
    """Raised when a tool name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f"tool '{name}' is already registered")
        self.name = name


class UnknownSessionError(ServiceError):
    """A message referenced a session id that is not live (never opened or already closed)."""

    def __init__(self, session_id: object):
        super().__init__(UNKNOWN_SESSION_MESSAGE, status_code=400)
        self.session_id = session_id
