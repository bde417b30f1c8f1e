"""
Analytics events repository.

Events are append-only: the storefront writes them, the back-office lists
and purges them.
"""
from typing import Any, Mapping, Optional

from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery, run
from core.repositories.base import BaseRepository

logger = get_logger(__name__)

EVENTS_TABLE = "analytics_events"


class AnalyticsRepository(BaseRepository):
    """Repository for analytics_events."""

    async def record_event(
        self,
        name: str,
        props: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
        ip: Optional[str] = None,
        ua: Optional[str] = None,
    ) -> None:
        """Append one event with the caller's network origin and client string."""
        await run(
            self.table(EVENTS_TABLE).insert({
                "name": name,
                "props": dict(props or {}),
                "user_id": user_id or None,
                "ip": ip or None,
                "ua": ua or None,
            }),
            "record_event",
            EVENTS_TABLE,
        )
        logger.debug("Analytics event recorded", extra={"event": name})

    async def list_events(
        self,
        request: PageRequest,
        name: Optional[str] = None,
        user_id: Optional[str] = None,
        ip: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Page:
        return await (
            ListQuery(EVENTS_TABLE, request)
            .where("name", name)
            .where("user_id", user_id)
            .where("ip", ip)
            .where("created_at", start, op="gte")
            .where("created_at", end, op="lte")
            .order_by("created_at", descending=True)
            .fetch(self.client)
        )

    async def purge_events(self, name: Optional[str] = None) -> None:
        """
        Delete events, optionally only those with one name.

        PostgREST refuses an unfiltered delete, so a full purge matches every
        row through a created_at filter.
        """
        builder = self.table(EVENTS_TABLE).delete()
        if name:
            builder = builder.eq("name", name)
        else:
            builder = builder.gte("created_at", "1970-01-01")
        await run(builder, "purge_events", EVENTS_TABLE)
        logger.info("Analytics events purged", extra={"event": name or "*"})
