from .support_service import (  # noqa: F401
    get_customer_data,
    log_interaction,
    search_knowledge_base,
)
