"""
External product import.

Imports marketplace products into the catalog, pricing each one from its
supplier cost with the caller's PricingRules.
"""
from typing import Any, Dict, List, Optional

from core.exceptions import StoreError
from core.models import PricingRules, compute_price, detect_provider, supplier_type_for
from core.observability import get_logger, metrics
from core.providers import ExternalCatalogProvider, ExternalProduct, get_provider
from core.repositories.imports_repo import ImportsRepository

logger = get_logger(__name__)


class ImportService:
    """Creates catalog products from external marketplace listings."""

    def __init__(self, client, provider: ExternalCatalogProvider = None):
        self.repo = ImportsRepository(client)
        self.provider = provider or get_provider()

    def _product_row(
        self,
        product: ExternalProduct,
        price: int,
        category_id: Any,
        supplier_id: Any,
        external_url: str = None,
    ) -> Dict[str, Any]:
        row = {
            "name": product.name,
            "description": product.description,
            "price": price,
            "image_url": product.image_url,
            "category_id": category_id,
            "external_id": product.external_id,
            "stock_quantity": product.stock_quantity or 0,
            "is_external": True,
            "is_active": True,
        }
        if supplier_id is not None:
            row["supplier_id"] = supplier_id
        if external_url:
            row["external_url"] = external_url
        return row

    async def _mark_item(self, item_id: Any, status: str, **fields: Any) -> None:
        """Record an item outcome; a failed bookkeeping write never fails the import."""
        if item_id is None:
            return
        try:
            await self.repo.mark_item(item_id, status, **fields)
        except StoreError as e:
            metrics.record_error("import_item_tracking")
            logger.warning(f"Import item outcome not recorded: {e.message}", extra={"item_id": item_id})

    async def import_by_url(self, url: str, rules: Optional[PricingRules]) -> Dict[str, Any]:
        """
        Import the single product behind a marketplace URL.

        Returns:
            The imported product description with its final price
        """
        provider = detect_provider(url)
        product = await self.provider.fetch_product(url)
        price = compute_price(product.price, rules)

        supplier_id = await self.repo.ensure_supplier(
            provider.label,
            supplier_type=supplier_type_for(provider),
            website=provider.website,
            description=f"Auto-created supplier for URL imports ({provider.label})",
        )
        category_id = await self.repo.ensure_category(product.category)
        await self.repo.insert_row(
            "products",
            self._product_row(product, price, category_id, supplier_id, external_url=url),
        )

        logger.info(
            "Product imported from URL",
            extra={"provider": provider.key, "price": price},
        )
        return {**product.to_dict(), "price": price}

    async def import_batch(
        self,
        supplier_label: str,
        products: List[ExternalProduct],
        rules: Optional[PricingRules],
        user_id: str,
    ) -> Dict[str, Any]:
        """
        Import a batch of products under one job.

        Each product is recorded as a job item; products already imported
        (same external_id) and store failures mark the item failed without
        stopping the batch. The job is always finished: if the batch aborts,
        products it never reached count as failed.

        Returns:
            {job_id, success, failed}
        """
        job = await self.repo.create_job(user_id, supplier_label, rules.to_payload() if rules else None)
        success = failed = 0
        try:
            supplier_id = await self.repo.ensure_supplier(supplier_label)
            for product in products:
                item_id = None
                try:
                    item = await self.repo.add_item(job["id"], product.to_dict())
                    item_id = item["id"] if item else None
                    if await self.repo.product_exists(product.external_id):
                        failed += 1
                        await self._mark_item(item_id, "failed", error="Already exists")
                        continue

                    category_id = await self.repo.ensure_category(product.category)
                    created = await self.repo.insert_row(
                        "products",
                        self._product_row(product, compute_price(product.price, rules), category_id, supplier_id),
                    )
                except StoreError as e:
                    failed += 1
                    metrics.record_error("import_item")
                    logger.warning(
                        f"Import item failed: {e.message}",
                        extra={"job_id": job["id"], "external_id": product.external_id},
                    )
                    await self._mark_item(item_id, "failed", error=e.message)
                    continue

                success += 1
                await self._mark_item(item_id, "success", product_id=created["id"] if created else None)
        finally:
            await self.repo.finish_job(job["id"], success, len(products) - success)

        logger.info(
            "Import batch finished",
            extra={"job_id": job["id"], "supplier": supplier_label, "success": success, "failed": failed},
        )
        return {"job_id": job["id"], "success": success, "failed": failed}
