"""Support service layer shared by the MCP tools and the direct /tool endpoint.

The functions here hold the domain behaviour (knowledge-base lookup, customer
records, interaction tickets). They know nothing about transports or
sessions; the MCP layer in ``app.mcp`` wraps them with schemas and error
envelopes.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from supportdesk.app.mock_data import (
    CUSTOMERS,
    FALLBACK_CATEGORY,
    KNOWLEDGE_BASE,
    UNKNOWN_CUSTOMER,
)

ticket_logger = logging.getLogger("supportdesk.tickets")

RESOLUTION_PREVIEW_CHARS = 80

_ticket_lock = threading.Lock()
_last_ticket_ms = 0


def search_knowledge_base(query: str, answers: Optional[Mapping[str, str]] = None) -> str:
    """
    Return the canned answer for the first category key found in ``query``.

    Matching is a case-insensitive substring test in the mapping's iteration
    order; there is no ranking. Queries without a match get the general answer.
    """
    kb = KNOWLEDGE_BASE if answers is None else answers
    lowered = (query or "").lower()
    for key, answer in kb.items():
        if key in lowered:
            return answer
    return kb[FALLBACK_CATEGORY]


def get_customer_data(
    customer_id: str,
    customers: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Dict[str, Any]:
    """Look up a customer record; unknown ids get the placeholder record."""
    store = CUSTOMERS if customers is None else customers
    record = store.get(customer_id)
    if record is None:
        return dict(UNKNOWN_CUSTOMER)
    return dict(record)


def _next_ticket_id() -> str:
    global _last_ticket_ms
    now_ms = int(time.time() * 1000)
    with _ticket_lock:
        # Same-millisecond calls still get distinct ids.
        if now_ms <= _last_ticket_ms:
            now_ms = _last_ticket_ms + 1
        _last_ticket_ms = now_ms
    return f"TKT-{now_ms}"


def _iso_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def log_interaction(customer_id: str, category: str, resolution: str) -> str:
    """
    Record a support interaction and return a confirmation message.

    Nothing is persisted: the ticket only exists as a log entry. Empty strings
    are valid for every field.
    """
    ticket_id = _next_ticket_id()
    timestamp = _iso_timestamp()
    preview = (resolution or "")[:RESOLUTION_PREVIEW_CHARS]
    ticket_logger.info(
        "[Ticket Created] %s\n  Customer   : %s\n  Category   : %s\n  Time       : %s\n  Resolution : %s...",
        ticket_id,
        customer_id,
        category,
        timestamp,
        preview,
    )
    return f"Interaction logged successfully. Ticket ID: {ticket_id}. Timestamp: {timestamp}"
