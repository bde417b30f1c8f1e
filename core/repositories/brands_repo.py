"""
Brand / supplier repository.

Reads go through the brands_full view (which carries the derived
product_count); writes go to the suppliers table.
"""
from typing import Any, Dict, Mapping, Optional

from core.exceptions import NotFoundError, ValidationError
from core.models import SupplierType
from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery
from core.repositories.base import BaseRepository
from core.repositories.catalog_repo import PRODUCT_SELECT, PUBLIC_PRODUCT_SORTS
from core.validators import is_uuid, pick_fields, require_text, slugify, validate_choice

logger = get_logger(__name__)

BRANDS_VIEW = "brands_full"

SUPPLIER_FIELDS = ("name", "slug", "type", "is_active", "website", "description", "logo_url")

# Public sort key -> (column, descending)
BRAND_SORTS = {
    "name": ("name", False),
    "newest": ("created_at", True),
    "oldest": ("created_at", False),
}
ADMIN_SUPPLIER_SORTS = ("name", "created_at", "product_count", "type")


def supplier_values(payload: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate a supplier insert (or, with partial=True, a whitelisted update)."""
    if partial:
        values = pick_fields(payload, SUPPLIER_FIELDS)
    else:
        name = require_text(payload, "name", "Name required")
        values = {key: payload[key] for key in SUPPLIER_FIELDS if key in payload}
        values["name"] = name
        values.setdefault("type", SupplierType.OTHER.value)
        values.setdefault("is_active", True)
        values.setdefault("slug", slugify(name))

    if "type" in values:
        values["type"] = validate_choice(values["type"], SupplierType.values(), "type")
    if "is_active" in values:
        values["is_active"] = bool(values["is_active"])
    if "slug" in values:
        values["slug"] = slugify(values["slug"]) or slugify(values.get("name"))
    if "name" in values and partial:
        if not str(values["name"] or "").strip():
            raise ValidationError("name", "Name required")
        values["name"] = str(values["name"]).strip()
    return values


class BrandsRepository(BaseRepository):
    """Repository for brands (public) and suppliers (back-office)."""

    # ─── Storefront ───────────────────────────────────────────────────────────

    async def list_brands(self, request: PageRequest, term: str = "", sort: str = "name") -> Page:
        column, descending = BRAND_SORTS.get(sort, BRAND_SORTS["name"])
        return await (
            ListQuery(BRANDS_VIEW, request)
            .where("is_active", True)
            .search(["name", "slug"], term)
            .order_by(column, descending)
            .fetch(self.client)
        )

    async def get_brand(self, slug: str) -> Dict[str, Any]:
        brand = await self.fetch_one(
            self.table(BRANDS_VIEW).select("*").eq("slug", slug).maybe_single(),
            "get_brand",
            BRANDS_VIEW,
        )
        if brand is None:
            raise NotFoundError("Brand not found")
        return brand

    async def resolve_brand(self, key: str) -> Dict[str, Any]:
        """Find a brand by slug, falling back to id when the key is a UUID."""
        columns = ("slug", "id") if is_uuid(key) else ("slug",)
        for column in columns:
            brand = await self.fetch_one(
                self.table(BRANDS_VIEW).select("id, name, slug").eq(column, key).maybe_single(),
                f"resolve_brand_by_{column}",
                BRANDS_VIEW,
            )
            if brand is not None:
                return brand
        raise NotFoundError("Brand not found")

    async def brand_products(
        self,
        brand_id: str,
        request: PageRequest,
        in_stock: bool = False,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort: str = "newest",
    ) -> Page:
        column, descending = PUBLIC_PRODUCT_SORTS.get(sort, PUBLIC_PRODUCT_SORTS["newest"])
        return await (
            ListQuery("products", request, select=PRODUCT_SELECT)
            .where("is_active", True)
            .where("supplier_id", brand_id)
            .where("stock_quantity", 0 if in_stock else None, op="gt")
            .where("price", min_price, op="gte")
            .where("price", max_price, op="lte")
            .order_by(column, descending)
            .fetch(self.client)
        )

    # ─── Back-office ──────────────────────────────────────────────────────────

    async def list_suppliers(
        self,
        request: PageRequest,
        term: str = "",
        supplier_type: Optional[str] = None,
        active: Optional[bool] = None,
        sort: str = "name",
        descending: bool = False,
    ) -> Page:
        return await (
            ListQuery(BRANDS_VIEW, request)
            .search(["name", "slug"], term)
            .where("type", supplier_type)
            .where("is_active", active)
            .order_by(sort, descending)
            .fetch(self.client)
        )

    async def create_supplier(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        values = supplier_values(payload)
        row = await self.insert_row("suppliers", values)
        logger.info("Supplier created", extra={"slug": values["slug"], "type": values["type"]})
        return row

    async def update_supplier(self, supplier_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.update_by_id(
            "suppliers", supplier_id, supplier_values(payload, partial=True), not_found="Supplier not found"
        )

    async def delete_supplier(self, supplier_id: str) -> None:
        await self.delete_by_id("suppliers", supplier_id)
