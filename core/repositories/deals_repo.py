"""
Deals repository.

The storefront deals listing is a two-pass read: product ids come from the
product_deals_agg ranking (refreshed out of band), then the products are
fetched by id and put back into ranking order.
"""
from typing import Any, List, Optional, Tuple

from core.exceptions import StoreError
from core.models import discount_percent
from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery, ordered_join, rows_of, run
from core.repositories.base import BaseRepository
from core.repositories.catalog_repo import PRODUCT_SELECT

logger = get_logger(__name__)

RANKING_VIEW = "product_deals_agg"
ON_SALE_VIEW = "products_on_sale"

ADMIN_DEAL_SORTS = ("created_at", "price", "name", "discount")


class DealsRepository(BaseRepository):
    """Repository for ranked and back-office deal listings."""

    async def ranked_ids(self, request: PageRequest, min_discount: float = 0) -> Tuple[List[Any], int]:
        """One page of product ids by discount, highest first, plus the ranking size."""
        builder = (
            self.table(RANKING_VIEW)
            .select("product_id,effective_discount_pct", count="exact")
            .gte("effective_discount_pct", min_discount)
            .order("effective_discount_pct", desc=True)
            .range(*request.bounds)
        )
        response = await run(builder, "deals_ranking", RANKING_VIEW)
        return [row["product_id"] for row in rows_of(response)], response.count or 0

    async def ranked_deals(self, request: PageRequest, min_discount: float = 0) -> Page:
        """
        Products on deal in ranking order.

        An empty ranking page returns without the second read. A product
        removed between the two reads is dropped; total still counts it.
        """
        ids, total = await self.ranked_ids(request, min_discount)
        if not ids:
            return Page(items=[], request=request, total=total)

        products = await self.fetch_all(
            self.table("products").select(PRODUCT_SELECT).in_("id", ids),
            "deals_products",
            "products",
        )
        return Page(items=ordered_join(ids, products), request=request, total=total)

    async def admin_deals(
        self,
        request: PageRequest,
        term: str = "",
        min_discount: float = 0,
        sort: str = "created_at",
        descending: bool = True,
    ) -> Tuple[Page, Optional[str]]:
        """
        Back-office deals: active products on sale with a computed discount.

        Reads the products_on_sale view and falls back to all active products
        when the view fails or is empty; the returned note says why. The
        minimum discount and the discount sort apply to the current page.

        Returns:
            (page, note)
        """
        column = sort if sort in ("created_at", "price", "name") else "created_at"
        column_desc = descending if sort in ("created_at", "price", "name") else True

        def build(table: str) -> ListQuery:
            return (
                ListQuery(table, request, select=PRODUCT_SELECT)
                .where("is_active", True)
                .search(["name", "slug"], term)
                .order_by(column, column_desc)
            )

        note = None
        try:
            page = await build(ON_SALE_VIEW).fetch(self.client)
        except StoreError as e:
            logger.warning(f"{ON_SALE_VIEW} unavailable, falling back to products: {e.message}")
            note = e.message
            page = None

        if page is None or not page.items:
            if note is None:
                note = f"{ON_SALE_VIEW} returned no rows; showing active products"
            page = await build("products").fetch(self.client)

        items = [
            {**row, "discount": discount_percent(row.get("price"), row.get("compare_price"))}
            for row in page.items
        ]
        if min_discount > 0:
            items = [row for row in items if row["discount"] >= min_discount]
        if sort == "discount":
            items.sort(key=lambda row: row["discount"], reverse=descending)
        page.items = items
        return page, note
