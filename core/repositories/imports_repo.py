"""
Import jobs repository.

Bookkeeping for external product imports: jobs and their per-product items,
plus the get-or-create lookups an import needs for suppliers and categories.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from core.observability import get_logger
from core.pagination import Page, PageRequest
from core.queries import ListQuery, run
from core.repositories.base import BaseRepository
from core.validators import slugify

logger = get_logger(__name__)

JOBS_TABLE = "import_jobs"
ITEMS_TABLE = "import_job_items"


def job_status(success: int, failed: int) -> str:
    """Final job status from its item outcomes."""
    if failed and success:
        return "partial"
    if failed:
        return "failed"
    return "success"


class ImportsRepository(BaseRepository):
    """Repository for import_jobs / import_job_items and import lookups."""

    # ─── Jobs ─────────────────────────────────────────────────────────────────

    async def list_jobs(self, request: PageRequest) -> Page:
        return await (
            ListQuery(JOBS_TABLE, request)
            .order_by("created_at", descending=True)
            .fetch(self.client)
        )

    async def create_job(self, user_id: str, supplier: str, pricing_rules: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.insert_row(JOBS_TABLE, {
            "user_id": user_id,
            "supplier": supplier,
            "status": "running",
            "pricing_rules": pricing_rules,
        })

    async def finish_job(self, job_id: Any, success: int, failed: int) -> None:
        await run(
            self.table(JOBS_TABLE).update({
                "status": job_status(success, failed),
                "success_count": success,
                "failed_count": failed,
                "finished_at": datetime.now(timezone.utc).isoformat(),
            }).eq("id", job_id),
            "finish_import_job",
            JOBS_TABLE,
        )

    async def add_item(self, job_id: Any, product: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.insert_row(ITEMS_TABLE, {
            "job_id": job_id,
            "external_id": product.get("external_id"),
            "name": product.get("name"),
            "status": "pending",
            "raw": dict(product),
        })

    async def mark_item(self, item_id: Any, status: str, **fields: Any) -> None:
        await run(
            self.table(ITEMS_TABLE).update({"status": status, **fields}).eq("id", item_id),
            "mark_import_item",
            ITEMS_TABLE,
        )

    # ─── Lookups ──────────────────────────────────────────────────────────────

    async def product_exists(self, external_id: str) -> bool:
        row = await self.fetch_one(
            self.table("products").select("id").eq("external_id", external_id).maybe_single(),
            "import_product_exists",
            "products",
        )
        return row is not None

    async def ensure_supplier(
        self,
        name: str,
        supplier_type: str = "other",
        website: str = None,
        description: str = None,
    ) -> Optional[Any]:
        """Id of the supplier with this name, creating it when missing."""
        existing = await self.fetch_one(
            self.table("suppliers").select("id").eq("name", name).maybe_single(),
            "import_find_supplier",
            "suppliers",
        )
        if existing:
            return existing["id"]

        values = {"name": name, "slug": slugify(name), "type": supplier_type, "is_active": True}
        if website:
            values["website"] = website
        if description:
            values["description"] = description
        created = await self.insert_row("suppliers", values)
        logger.info("Supplier auto-created for import", extra={"supplier": name})
        return created["id"] if created else None

    async def ensure_category(self, name: str) -> Optional[Any]:
        """Id of the category with this name, creating it when missing."""
        existing = await self.fetch_one(
            self.table("categories").select("id").eq("name", name).maybe_single(),
            "import_find_category",
            "categories",
        )
        if existing:
            return existing["id"]
        created = await self.insert_row("categories", {"name": name, "slug": slugify(name)})
        return created["id"] if created else None
