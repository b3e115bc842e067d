"""Public MCP tools wrapping the support service layer.

Each tool is a thin coroutine around a ``support_service`` function: it owns
the wire-level argument names (camelCase, as clients send them) and nothing
else. ``build_registry`` assembles the catalogue into a ``ToolRegistry`` that
both the SSE transport and the direct /tool endpoint share.
"""

from __future__ import annotations

from typing import Any, Dict, List

from supportdesk.app.mcp.registry import ToolDefinition, ToolRegistry
from supportdesk.app.services import support_service as svc


async def search_knowledge_base(query: str) -> str:
    """Return the canned support answer matching the query's category keyword."""
    return svc.search_knowledge_base(query)


async def get_customer_data(customerId: str) -> Dict[str, Any]:  # noqa: N803 - wire name
    """Return the customer's plan, membership date and open ticket count."""
    return svc.get_customer_data(customerId)


async def log_interaction(customerId: str, category: str, resolution: str) -> str:  # noqa: N803
    """Create a support ticket entry for a resolved interaction."""
    return svc.log_interaction(customerId, category, resolution)


PUBLIC_TOOL_NAMES = [
    "search_knowledge_base",
    "get_customer_data",
    "log_interaction",
]


TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name="search_knowledge_base",
        description="Search the support knowledge base for an answer to a customer question.",
        function=search_knowledge_base,
        input_schema={
            "type": "object",
            "properties": {"query": {"type": "string"}},
            "required": ["query"],
        },
        output_schema={"type": "string"},
        usage_hint="Pass the customer's question verbatim; category keywords (billing, technical, account) select the answer.",
    ),
    ToolDefinition(
        name="get_customer_data",
        description="Fetch a customer's plan, membership date and open ticket count.",
        function=get_customer_data,
        input_schema={
            "type": "object",
            "properties": {"customerId": {"type": "string"}},
            "required": ["customerId"],
        },
        output_schema={
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "plan": {"type": "string"},
                "memberSince": {"type": "string"},
                "openTickets": {"type": "integer"},
            },
            "required": ["name", "plan", "memberSince", "openTickets"],
        },
        usage_hint="Unknown ids return an 'Unknown Customer' placeholder instead of an error.",
    ),
    ToolDefinition(
        name="log_interaction",
        description="Log a customer interaction and create a support ticket.",
        function=log_interaction,
        input_schema={
            "type": "object",
            "properties": {
                "customerId": {"type": "string"},
                "category": {"type": "string"},
                "resolution": {"type": "string"},
            },
            "required": ["customerId", "category", "resolution"],
        },
        output_schema={"type": "string"},
        usage_hint="Call once the interaction is resolved; the reply carries the ticket id.",
    ),
]

# Registry must only expose the public support tools.
assert [definition.name for definition in TOOL_DEFINITIONS] == PUBLIC_TOOL_NAMES


def build_registry(**kwargs: Any) -> ToolRegistry:
    """Create a registry preloaded with the public support tools."""
    registry = ToolRegistry(**kwargs)
    for definition in TOOL_DEFINITIONS:
        registry.register(definition)
    return registry
