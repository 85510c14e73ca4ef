"""
Prebuilt house catalog, read from the document store.

The AI assistant embeds the catalog in its system prompt. A missing or
failing store yields an empty catalog so that chat keeps working.
"""
from typing import Any, Dict, List

from app.core.config import get_settings
from app.core.database import get_supabase_client
from app.core.logging import get_logger

logger = get_logger(__name__)


def fetch_houses() -> List[Dict[str, Any]]:
    """Return all catalog rows, or [] when the store is unavailable."""
    client = get_supabase_client()
    if client is None:
        return []

    table = get_settings().houses_table
    try:
        response = client.table(table).select("*").execute()
    except Exception as e:
        logger.error(
            "house_catalog_fetch_failed",
            table=table,
            error=str(e),
            error_type=type(e).__name__,
        )
        return []

    houses = [row for row in (response.data or []) if isinstance(row, dict)]
    logger.info("house_catalog_fetched", table=table, count=len(houses))
    return houses
