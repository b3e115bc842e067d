"""
Model Context Protocol (MCP) layer wrapping the support service functions.

The registry, session store and SSE transport here are framework-agnostic;
``supportdesk.main`` wires them into FastAPI routes.
"""

from .errors import DuplicateToolError, ServiceError, UnknownSessionError  # noqa: F401
from .registry import (  # noqa: F401
    ToolDefinition,
    ToolErrorKind,
    ToolRegistry,
    ToolResult,
    validate_args,
)
from .sessions import Session, SessionState, SessionStore  # noqa: F401
from .tools import PUBLIC_TOOL_NAMES, TOOL_DEFINITIONS, build_registry  # noqa: F401
from .transport import StreamingTransport  # noqa: F401
