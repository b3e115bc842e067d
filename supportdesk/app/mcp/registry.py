"""Tool registry shared by every transport.

A registry maps tool names to ``ToolDefinition`` objects, validates incoming
arguments against each tool's declared input schema and runs the handler.
``invoke`` never raises: every outcome comes back as a ``ToolResult`` so the
SSE and direct endpoints can render it the same way.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from supportdesk.app.error_messages import (
    handler_failure_message,
    invalid_input_message,
    unknown_tool_message,
)
from supportdesk.app.mcp.errors import DuplicateToolError

logger = logging.getLogger("supportdesk.mcp")

DEFAULT_ARGS_LOG_LIMIT = 200

_TYPE_CHECKS: Dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "object": dict,
    "array": list,
}


class ToolErrorKind(str, Enum):
    UNKNOWN_TOOL = "UnknownTool"
    INVALID_INPUT = "InvalidInput"
    HANDLER_FAILURE = "HandlerFailure"


@dataclass(frozen=True)
class ToolResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None
    kind: Optional[ToolErrorKind] = None

    @classmethod
    def success(cls, value: Any) -> "ToolResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ToolErrorKind, message: str) -> "ToolResult":
        return cls(ok=False, error=message, kind=kind)

    @property
    def is_client_error(self) -> bool:
        return self.kind in (ToolErrorKind.UNKNOWN_TOOL, ToolErrorKind.INVALID_INPUT)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"success": True, "result": self.value}
        return {"success": False, "error": self.error}


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    function: Callable[..., Any]
    input_schema: Dict[str, Any]
    output_schema: Dict[str, Any] = field(default_factory=dict)
    usage_hint: Optional[str] = None


class InvalidArguments(ValueError):
    pass


def validate_args(schema: Dict[str, Any], args: Any) -> None:
    """Check ``args`` against a JSON-schema subset (object, required, primitive types)."""
    if schema.get("type") != "object":
        return
    if not isinstance(args, dict):
        raise InvalidArguments("arguments must be an object")

    properties = schema.get("properties") or {}
    required_fields = schema.get("required") or []

    for name in required_fields:
        if name not in args:
            raise InvalidArguments(f"missing required argument '{name}'")

    for name, value in args.items():
        if name not in properties:
            continue  # unknown keys are ignored, not rejected
        _validate_type(name, value, properties[name])


def _validate_type(name: str, value: Any, schema: Dict[str, Any]) -> None:
    expected_type = schema.get("type")
    py_type = _TYPE_CHECKS.get(expected_type) if expected_type else None
    if py_type is None:
        return
    # bool is an int subclass; don't let True pass as a number
    if isinstance(value, bool) and expected_type in ("integer", "number"):
        raise InvalidArguments(f"argument '{name}' must be of type {expected_type}")
    if not isinstance(value, py_type):
        raise InvalidArguments(f"argument '{name}' must be of type {expected_type}")


class ToolRegistry:
    """Name → ToolDefinition mapping with validated, logged invocation."""

    def __init__(self, *, args_log_limit: int = DEFAULT_ARGS_LOG_LIMIT) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        self.args_log_limit = args_log_limit

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        if not isinstance(definition.name, str) or not definition.name:
            raise ValueError("Tool name must be a non-empty string")
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.name] = definition
        return definition

    def register_tool(
        self,
        name: str,
        input_schema: Dict[str, Any],
        handler: Callable[..., Any],
        *,
        description: str = "",
        output_schema: Optional[Dict[str, Any]] = None,
        usage_hint: Optional[str] = None,
    ) -> ToolDefinition:
        return self.register(
            ToolDefinition(
                name=name,
                description=description,
                function=handler,
                input_schema=input_schema,
                output_schema=output_schema or {},
                usage_hint=usage_hint,
            )
        )

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))

    def list_tools(self) -> List[Dict[str, Any]]:
        """Return a JSON-serializable listing of all registered tools."""
        return [
            {
                "name": definition.name,
                "description": definition.description,
                "inputSchema": definition.input_schema,
                "usage_hint": definition.usage_hint,
            }
            for definition in self._tools.values()
        ]

    def _args_preview(self, args: Any) -> str:
        try:
            text = json.dumps(args, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = repr(args)
        if len(text) > self.args_log_limit:
            return text[: self.args_log_limit] + "..."
        return text

    async def invoke(self, name: Any, raw_input: Any) -> ToolResult:
        """Validate and run a tool by name. Failures are returned, not raised."""
        logger.info("[Tool] %s | args: %s", name, self._args_preview(raw_input))

        tool_def = self._tools.get(name) if isinstance(name, str) else None
        if tool_def is None:
            return ToolResult.failure(
                ToolErrorKind.UNKNOWN_TOOL,
                unknown_tool_message(name, self.names()),
            )

        args = {} if raw_input is None else raw_input
        try:
            validate_args(tool_def.input_schema, args)
        except InvalidArguments as exc:
            logger.info("[Tool] %s rejected: %s", name, exc)
            return ToolResult.failure(
                ToolErrorKind.INVALID_INPUT,
                invalid_input_message(tool_def.name, str(exc)),
            )

        properties = tool_def.input_schema.get("properties")
        if properties is not None:
            args = {key: value for key, value in args.items() if key in properties}

        try:
            value = tool_def.function(**args)
            if inspect.isawaitable(value):
                value = await value
        except Exception:
            logger.exception("Tool %s failed", tool_def.name)
            return ToolResult.failure(
                ToolErrorKind.HANDLER_FAILURE,
                handler_failure_message(tool_def.name),
            )
        return ToolResult.success(value)
