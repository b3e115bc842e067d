"""Caller-facing error texts shared by the SSE and direct transports.

Keeping the wording in one place means both paths tell clients the same
thing about unknown tools, bad arguments and stale sessions.
"""

from __future__ import annotations

from typing import Iterable

UNKNOWN_SESSION_MESSAGE = "Unknown session ID. Please reconnect via /sse first."


def unknown_tool_message(name: object, available: Iterable[str]) -> str:
    """Name the rejected tool and list what can be called instead."""
    listed = ", ".join(available) or "(none)"
    return f"Unknown tool: {name}. Available tools: {listed}"


def invalid_input_message(tool_name: str, problem: str) -> str:
    return f"Invalid arguments for tool '{tool_name}': {problem}"


def handler_failure_message(tool_name: str) -> str:
    """Generic text for failed handlers; details stay in the server log."""
    return f"Tool '{tool_name}' failed due to an internal error."


def invalid_envelope_message() -> str:
    return "Request body must be a JSON object with 'name' and 'arguments'."
