"""
Catalog repository for categories and products.

Admin listings, whitelisted partial updates, bulk actions, the public
product listing, and the storefront quick search.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.config import config
from core.exceptions import NotFoundError, ValidationError
from core.models import BulkAction, apply_discount, reset_promotion
from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery, run
from core.repositories.base import BaseRepository
from core.validators import (
    clamp_stock,
    coerce_number,
    pick_fields,
    require_text,
    slugify,
)

logger = get_logger(__name__)

PRODUCT_SELECT = "*, categories (*)"

# Mutable columns per entity
CATEGORY_FIELDS = ("name", "description", "image_url", "slug")
PRODUCT_FIELDS = (
    "name", "slug", "sku", "description", "short_description", "image_url",
    "price", "compare_price", "cost_price", "stock_quantity", "low_stock_threshold",
    "is_active", "is_featured", "category_id", "supplier_id",
)
_NULLABLE_NUMBERS = ("compare_price", "cost_price")
_FLAGS = ("is_active", "is_featured")

ADMIN_PRODUCT_SORTS = ("created_at", "name", "price", "stock_quantity")

# Public sort key -> (column, descending)
PUBLIC_PRODUCT_SORTS = {
    "newest": ("created_at", True),
    "oldest": ("created_at", False),
    "price-asc": ("price", False),
    "price-desc": ("price", True),
    "name": ("name", False),
}


# ═══════════════════════════════════════════════════════════════════════════════
# PAYLOAD NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════════

def category_insert(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a new category; slug falls back to one derived from the name."""
    name = require_text(payload, "name", "Name required")
    image_url = payload.get("image_url")
    return {
        "name": name,
        "slug": slugify(payload.get("slug")) or slugify(name),
        "description": str(payload.get("description") or "").strip(),
        "image_url": str(image_url).strip() if image_url else None,
    }


def category_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Whitelist and normalize a category partial update."""
    update = pick_fields(payload, CATEGORY_FIELDS)
    if "name" in update:
        update["name"] = str(update["name"])
    if "description" in update:
        update["description"] = str(update["description"] or "")
    if "image_url" in update:
        update["image_url"] = str(update["image_url"]) if update["image_url"] else None
    if "slug" in update:
        update["slug"] = slugify(update["slug"]) or slugify(payload.get("name"))
    return update


def product_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Whitelist and normalize a product partial update.

    Numeric columns must hold finite numbers; stock is clamped to a
    non-negative integer.

    Raises:
        ValidationError: On an empty whitelist intersection or a bad number
    """
    update = pick_fields(payload, PRODUCT_FIELDS)
    for key in ("price", "low_stock_threshold"):
        if key in update:
            update[key] = coerce_number(update[key], key)
    for key in _NULLABLE_NUMBERS:
        if key in update:
            update[key] = coerce_number(update[key], key, allow_none=True)
    if "stock_quantity" in update:
        update["stock_quantity"] = clamp_stock(update["stock_quantity"])
    for key in _FLAGS:
        if key in update:
            update[key] = bool(update[key])
    if "slug" in update:
        update["slug"] = slugify(update["slug"]) or slugify(update.get("name"))
    return update


def product_insert(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a new product (name and price required)."""
    name = require_text(payload, "name", "Name required")
    if "price" not in payload:
        raise ValidationError("price", "Price required")
    values = product_update({**payload, "name": name})
    values.setdefault("slug", slugify(name))
    values.setdefault("stock_quantity", 0)
    values.setdefault("is_active", True)
    values.setdefault("is_featured", False)
    return values


def _with_product_count(row: Dict[str, Any]) -> Dict[str, Any]:
    embedded = row.get("products") or []
    count = embedded[0].get("count", 0) if embedded else 0
    return {**row, "product_count": count or 0}


class CatalogRepository(BaseRepository):
    """Repository for catalog data - categories and products."""

    # ─── Categories ───────────────────────────────────────────────────────────

    async def list_categories(self, request: PageRequest, term: str = "") -> Page:
        """Categories newest first, each with its product_count."""
        page = await (
            ListQuery("categories", request, select="*, products(count)")
            .search(["name", "slug"], term)
            .order_by("created_at", descending=True)
            .fetch(self.client)
        )
        page.items = [_with_product_count(row) for row in page.items]
        return page

    async def create_category(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        values = category_insert(payload)
        row = await self.insert_row("categories", values)
        logger.info("Category created", extra={"slug": values["slug"]})
        return row

    async def update_category(self, category_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.update_by_id("categories", category_id, category_update(payload))

    async def delete_category(self, category_id: str) -> None:
        await self.delete_by_id("categories", category_id)

    # ─── Products (back-office) ───────────────────────────────────────────────

    async def list_products_admin(
        self,
        request: PageRequest,
        term: str = "",
        active: Optional[bool] = None,
        featured: Optional[bool] = None,
        stock: Optional[str] = None,
        sort: str = "created_at",
        descending: bool = True,
    ) -> Page:
        """
        Back-office product listing.

        Args:
            stock: "low" (at or under the low-stock threshold) or "out" (zero)
        """
        query = (
            ListQuery("products", request, select=PRODUCT_SELECT)
            .search(["name", "sku"], term)
            .where("is_active", active)
            .where("is_featured", True if featured else None)
            .order_by(sort, descending)
        )
        if stock == "low":
            query.where("stock_quantity", config.catalog.low_stock_threshold, op="lte")
        elif stock == "out":
            query.where("stock_quantity", 0)
        return await query.fetch(self.client)

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        row = await self.fetch_one(
            self.table("products").select(PRODUCT_SELECT).eq("id", product_id).maybe_single(),
            "get_product",
            "products",
        )
        if row is None:
            raise NotFoundError("Product not found")
        return row

    async def create_product(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        values = product_insert(payload)
        row = await self.insert_row("products", values)
        logger.info("Product created", extra={"slug": values["slug"]})
        return row

    async def update_product(self, product_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        update = product_update(payload)
        update["updated_at"] = datetime.now(timezone.utc).isoformat()
        return await self.update_by_id("products", product_id, update, not_found="Product not found")

    async def delete_product(self, product_id: str) -> None:
        await self.delete_by_id("products", product_id)

    async def bulk_update(self, ids: Sequence[str], action: BulkAction, percent: float = None) -> int:
        """
        Apply one bulk action to a set of products.

        Flag toggles and deletes are a single `in` write. Price actions read the
        current prices first and then write each row, stopping at the first
        failure.

        Returns:
            Number of products the action was applied to
        """
        ids = list(ids)
        flags = action.flag_update
        if flags is not None:
            await run(self.table("products").update(flags).in_("id", ids), f"bulk_{action.value}", "products")
            applied = len(ids)
        elif action is BulkAction.DELETE:
            await run(self.table("products").delete().in_("id", ids), "bulk_delete", "products")
            applied = len(ids)
        else:
            rows = await self.fetch_all(
                self.table("products").select("id, price, compare_price").in_("id", ids),
                "bulk_read_prices",
                "products",
            )
            for row in rows:
                if action is BulkAction.APPLY_DISCOUNT_PERCENT:
                    update = apply_discount(row, percent)
                else:
                    update = reset_promotion(row)
                await run(
                    self.table("products").update(update).eq("id", row["id"]),
                    f"bulk_{action.value}",
                    "products",
                )
            applied = len(rows)

        logger.info(f"Bulk {action.value} applied", extra={"count": applied})
        return applied

    # ─── Storefront ───────────────────────────────────────────────────────────

    async def list_products_public(
        self,
        request: PageRequest,
        term: str = "",
        categories: Sequence[str] = (),
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: bool = False,
        featured: bool = False,
        on_sale: bool = False,
        only_new: bool = False,
        new_days: int = 7,
        sort: str = "newest",
    ) -> Page:
        """
        Active products for the storefront.

        on_sale reads the products_on_sale view; only_new is a created_at
        cutoff so the count stays exact.
        """
        column, descending = PUBLIC_PRODUCT_SORTS.get(sort, PUBLIC_PRODUCT_SORTS["newest"])
        query = (
            ListQuery("products_on_sale" if on_sale else "products", request, select=PRODUCT_SELECT)
            .where("is_active", True)
            .search(["name", "short_description"], term)
            .where("category_id", list(categories), op="in_")
            .where("price", min_price if min_price and min_price > 0 else None, op="gte")
            .where("price", max_price if max_price and max_price > 0 else None, op="lte")
            .where("stock_quantity", 0 if in_stock else None, op="gt")
            .where("is_featured", True if featured else None)
            .order_by(column, descending)
        )
        if only_new:
            cutoff = datetime.now(timezone.utc) - timedelta(days=max(1, new_days))
            query.where("created_at", cutoff.isoformat(), op="gte")
        return await query.fetch(self.client)

    async def get_active_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return await self.fetch_one(
            self.table("products").select("*").eq("id", product_id).eq("is_active", True).maybe_single(),
            "get_active_product",
            "products",
        )

    async def search(self, term: str, limit: int) -> Dict[str, List[Dict[str, Any]]]:
        """Quick search: active categories by name and active products by name/short description."""
        categories = await self.fetch_all(
            self.table("categories")
            .select("*")
            .ilike("name", f"%{term}%")
            .eq("is_active", True)
            .limit(limit),
            "search_categories",
            "categories",
        )
        products = await self.fetch_all(
            self.table("products")
            .select(PRODUCT_SELECT)
            .eq("is_active", True)
            .or_(f"name.ilike.%{term}%,short_description.ilike.%{term}%")
            .order("created_at", desc=True)
            .limit(limit),
            "search_products",
            "products",
        )
        return {"products": products, "categories": categories}
