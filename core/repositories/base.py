"""
Base repository over the hosted store client.

All domain repositories inherit from this class.
"""
from typing import Any, Dict, List, Optional

from core.exceptions import NotFoundError
from core.observability import get_logger
from core.queries import rows_of, run

logger = get_logger(__name__)


class BaseRepository:
    """
    Base repository holding the shared Supabase client.

    Usage:
        class OrdersRepository(BaseRepository):
            async def get_order(self, order_id: str):
                return await self.fetch_one(
                    self.table("orders").select("*").eq("id", order_id).maybe_single(),
                    "get_order", "orders",
                )
    """

    def __init__(self, client):
        self.client = client

    def table(self, name: str):
        """Start a request builder on a table or view."""
        return self.client.table(name)

    async def fetch_all(self, builder, operation: str, table: str = None) -> List[Dict[str, Any]]:
        """Execute and return every row."""
        return rows_of(await run(builder, operation, table))

    async def fetch_one(self, builder, operation: str, table: str = None) -> Optional[Dict[str, Any]]:
        """Execute a maybe_single read; None when no row matched."""
        rows = rows_of(await run(builder, operation, table))
        return rows[0] if rows else None

    async def count(self, table: str, operation: str = None) -> int:
        """Exact row count of a table."""
        response = await run(
            self.table(table).select("id", count="exact").limit(1),
            operation or f"count_{table}",
            table,
        )
        return response.count or 0

    async def insert_row(self, table: str, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Insert one row and return it as stored."""
        rows = await self.fetch_all(self.table(table).insert(values), f"insert_{table}", table)
        return rows[0] if rows else None

    async def update_by_id(
        self,
        table: str,
        row_id: Any,
        update: Dict[str, Any],
        not_found: str = "Not found",
    ) -> Dict[str, Any]:
        """
        Apply a partial update to one row.

        Raises:
            NotFoundError: If no row has this id
        """
        rows = await self.fetch_all(
            self.table(table).update(update).eq("id", row_id),
            f"update_{table}",
            table,
        )
        if not rows:
            raise NotFoundError(not_found)
        logger.info(f"Updated {table} row", extra={"row_id": row_id, "fields": sorted(update)})
        return rows[0]

    async def delete_by_id(self, table: str, row_id: Any) -> None:
        await run(self.table(table).delete().eq("id", row_id), f"delete_{table}", table)
        logger.info(f"Deleted {table} row", extra={"row_id": row_id})
