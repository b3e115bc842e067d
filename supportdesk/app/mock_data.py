"""In-memory mock stores backing the support tools.

Both transports read from the same module-level mappings. Treat them as
read-only; handlers return copies of records, never the stored objects.
"""

from __future__ import annotations

from typing import Dict

# Insertion order is the match order for knowledge-base lookups.
KNOWLEDGE_BASE: Dict[str, str] = {
    "billing": (
        "For billing issues, please visit billing.company.com or call 1-800-BILLING. "
        "Our billing team is available Mon-Fri 9am-5pm EST."
    ),
    "technical": (
        "For technical issues: (1) Restart the application. (2) Clear your browser cache. "
        "(3) If the issue persists, uninstall and reinstall the app."
    ),
    "account": (
        "To reset your account: Go to Settings → Security → Reset Account. "
        "You will receive an email within 5 minutes."
    ),
    "general": (
        "For general inquiries, please contact support@company.com. "
        "We aim to respond within 24 hours."
    ),
}

FALLBACK_CATEGORY = "general"

CUSTOMERS: Dict[str, Dict[str, object]] = {
    "C001": {"name": "Alice Johnson", "plan": "Premium", "memberSince": "2021-03-15", "openTickets": 2},
    "C002": {"name": "Bob Smith", "plan": "Basic", "memberSince": "2023-07-01", "openTickets": 0},
    "C003": {"name": "Carol White", "plan": "Premium", "memberSince": "2020-01-10", "openTickets": 1},
}

UNKNOWN_CUSTOMER: Dict[str, object] = {
    "name": "Unknown Customer",
    "plan": "N/A",
    "memberSince": "N/A",
    "openTickets": 0,
}
