"""Message dispatch for the MCP tool registry.

Translates inbound envelopes into registry calls and ToolResults back into
wire replies. Two envelope styles are understood:

* JSON-RPC 2.0 (``initialize``, ``ping``, ``tools/list``, ``tools/call``), as
  sent by MCP clients over the SSE session protocol;
* the flat ``{"name": ..., "arguments": {...}}`` tool-call body used by the
  direct /tool endpoint.

Nothing here knows about sessions or HTTP frameworks; callers get back a
``(status_code, body)`` pair and decide how to send it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from supportdesk.app.error_messages import invalid_envelope_message
from supportdesk.app.mcp.registry import ToolErrorKind, ToolRegistry, ToolResult

logger = logging.getLogger("supportdesk.mcp")

MCP_PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

Reply = Tuple[int, Optional[Dict[str, Any]]]


def http_status(result: ToolResult) -> int:
    """HTTP status for a ToolResult on the direct (non JSON-RPC) path."""
    if result.ok:
        return 200
    if result.is_client_error:
        return 400
    return 500


async def call_tool(registry: ToolRegistry, envelope: Any) -> Reply:
    """Run a flat ``{name, arguments}`` envelope and return the /tool-shaped reply."""
    if not isinstance(envelope, dict):
        return 400, {"success": False, "error": invalid_envelope_message()}
    result = await registry.invoke(envelope.get("name"), envelope.get("arguments"))
    return http_status(result), result.to_dict()


def _rpc_result(req_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}


def _rpc_error(req_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": {"code": code, "message": message}}


def _text_content(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def tool_result_to_rpc(req_id: Any, result: ToolResult) -> Dict[str, Any]:
    if result.ok:
        return _rpc_result(
            req_id,
            {"content": [{"type": "text", "text": _text_content(result.value)}], "isError": False},
        )
    if result.kind is ToolErrorKind.HANDLER_FAILURE:
        return _rpc_result(
            req_id,
            {"content": [{"type": "text", "text": result.error}], "isError": True},
        )
    return _rpc_error(req_id, INVALID_PARAMS, result.error or "")


async def dispatch_request(
    registry: ToolRegistry,
    message: Dict[str, Any],
    *,
    server_info: Dict[str, str],
) -> Optional[Dict[str, Any]]:
    """
    Handle a single JSON-RPC request dictionary and return the response dictionary.

    Notifications (no ``id``) are processed and return ``None``.
    """
    method = message.get("method")
    req_id = message.get("id")
    params = message.get("params") or {}
    is_notification = "id" not in message

    if method == "initialize":
        response = _rpc_result(
            req_id,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": dict(server_info),
            },
        )
    elif method == "ping":
        response = _rpc_result(req_id, {})
    elif method == "tools/list":
        tools = [
            {"name": definition["name"], "description": definition["description"], "inputSchema": definition["inputSchema"]}
            for definition in registry.list_tools()
        ]
        response = _rpc_result(req_id, {"tools": tools})
    elif method == "tools/call":
        if not isinstance(params, dict):
            response = _rpc_error(req_id, INVALID_PARAMS, "params must be an object")
        else:
            result = await registry.invoke(params.get("name"), params.get("arguments"))
            response = tool_result_to_rpc(req_id, result)
    elif isinstance(method, str) and method.startswith("notifications/"):
        logger.debug("Notification %s", method)
        return None
    else:
        response = _rpc_error(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    if is_notification:
        return None
    return response


async def dispatch_message(
    registry: ToolRegistry,
    message: Any,
    *,
    server_info: Dict[str, str],
) -> Reply:
    """Route any posted message body to the matching envelope handler."""
    if isinstance(message, dict) and "method" in message:
        response = await dispatch_request(registry, message, server_info=server_info)
        if response is None:
            return 202, None
        return 200, response
    if isinstance(message, dict) and "name" in message:
        return await call_tool(registry, message)

    req_id = message.get("id") if isinstance(message, dict) else None
    return 400, _rpc_error(req_id, INVALID_REQUEST, "Invalid Request: expected a JSON-RPC or tool-call envelope")
