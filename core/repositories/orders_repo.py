"""
Orders repository for the back-office.

Orders reference auth users rather than profiles, so the owner's name and
email are attached with a second read against profiles.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.exceptions import NotFoundError
from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery
from core.repositories.base import BaseRepository
from core.validators import pick_fields, require_text

logger = get_logger(__name__)

ORDER_FIELDS = ("status", "payment_status")
ORDER_SORTS = ("created_at", "total_amount", "status", "payment_status", "order_number")

# Cap on profiles matched by a free-text order search
MAX_SEARCH_PROFILES = 100


class OrdersRepository(BaseRepository):
    """Repository for orders and their line items."""

    async def matching_profile_ids(self, term: str) -> List[str]:
        """Ids of profiles whose full name or email contains term."""
        rows = await self.fetch_all(
            self.table("profiles")
            .select("id")
            .or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")
            .limit(MAX_SEARCH_PROFILES),
            "orders_search_profiles",
            "profiles",
        )
        return [row["id"] for row in rows]

    async def owners_by_id(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Map user id -> {full_name, email} for the given owners."""
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        rows = await self.fetch_all(
            self.table("profiles").select("id, full_name, email").in_("id", ids),
            "orders_owner_profiles",
            "profiles",
        )
        return {row["id"]: {"full_name": row.get("full_name"), "email": row.get("email")} for row in rows}

    async def attach_owners(self, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        owners = await self.owners_by_id(order.get("user_id") for order in orders)
        return [{**order, "profiles": owners.get(order.get("user_id"))} for order in orders]

    async def list_orders(
        self,
        request: PageRequest,
        term: str = "",
        status: Optional[str] = None,
        payment: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        sort: str = "created_at",
        descending: bool = True,
    ) -> Page:
        """
        Back-office order listing.

        A search term matches the order number or the owner's full name or
        email: owner matches are resolved first and folded into one `or`
        clause on the orders read.
        """
        query = ListQuery("orders", request)
        if term:
            clauses = [f"order_number.ilike.%{term}%"]
            owner_ids = await self.matching_profile_ids(term)
            if owner_ids:
                clauses.append(f"user_id.in.({','.join(owner_ids)})")
            query.any_of(",".join(clauses))

        page = await (
            query.where("status", status)
            .where("payment_status", payment)
            .where("created_at", start, op="gte")
            .where("created_at", end, op="lte")
            .order_by(sort, descending)
            .fetch(self.client)
        )
        page.items = await self.attach_owners(page.items)
        return page

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """One order with its owner and line items (each with its product)."""
        order = await self.fetch_one(
            self.table("orders").select("*").eq("id", order_id).maybe_single(),
            "get_order",
            "orders",
        )
        if order is None:
            raise NotFoundError("Not found")
        items = await self.fetch_all(
            self.table("order_items").select("*, products (*)").eq("order_id", order_id),
            "get_order_items",
            "order_items",
        )
        owners = await self.owners_by_id([order.get("user_id")])
        return {**order, "profiles": owners.get(order.get("user_id")), "order_items": items}

    async def update_order(self, order_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields = pick_fields(payload, ORDER_FIELDS)
        update = {key: require_text(fields, key, f"{key} must be a non-empty string") for key in fields}
        return await self.update_by_id("orders", order_id, update)

    async def orders_for_user(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return await self.fetch_all(
            self.table("orders")
            .select("id, order_number, status, payment_status, total_amount, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
            "orders_for_user",
            "orders",
        )

