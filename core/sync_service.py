"""
Scheduled maintenance jobs, triggered by the cron endpoints.

- Aggregate refresh: recompute the best-sellers and deals materialized views
  through their store functions
- External sync: pull current price/stock for every imported product
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

from core.exceptions import StoreError
from core.observability import Timer, get_logger, metrics
from core.providers import ExternalCatalogProvider, get_provider
from core.queries import rows_of, run

logger = get_logger(__name__)

BEST_SELLERS_REFRESH = "refresh_product_sales_agg"
DEALS_REFRESH = "refresh_product_deals_agg"


class SyncService:
    """
    Maintenance jobs over the hosted store.

    Each job is a plain coroutine; scheduling belongs to the external cron
    that calls the /cron endpoints.
    """

    def __init__(self, client, provider: ExternalCatalogProvider = None):
        self.client = client
        self.provider = provider or get_provider()

    async def refresh_aggregate(self, function: str) -> None:
        """Run a store-side refresh function (returns nothing)."""
        await run(self.client.rpc(function, {}), function)
        logger.info("Aggregate refreshed", extra={"function": function})

    async def refresh_best_sellers(self) -> None:
        await self.refresh_aggregate(BEST_SELLERS_REFRESH)

    async def refresh_deals(self) -> None:
        await self.refresh_aggregate(DEALS_REFRESH)

    async def external_products(self) -> List[Dict[str, Any]]:
        """Imported products that still carry a marketplace reference."""
        response = await run(
            self.client.table("products")
            .select("id, name, price, stock_quantity, external_id")
            .eq("is_external", True),
            "sync_external_read",
            "products",
        )
        return [row for row in rows_of(response) if row.get("external_id")]

    async def sync_external_products(self) -> int:
        """
        Update price and stock of every external product.

        Best effort: each product is updated independently, a failure is
        logged and skipped, and only successful updates are counted.

        Returns:
            Number of products updated
        """
        products = await self.external_products()
        updated = 0

        with Timer("sync_external_products", logger, metric="sync.external_products") as timer:
            for product in products:
                try:
                    quote = await self.provider.fetch_quote(product)
                    if quote is None:
                        continue
                    await run(
                        self.client.table("products")
                        .update({
                            "price": quote.price,
                            "stock_quantity": quote.stock_quantity,
                            "updated_at": datetime.now(timezone.utc).isoformat(),
                        })
                        .eq("id", product["id"]),
                        "sync_external_update",
                        "products",
                    )
                    updated += 1
                except StoreError as e:
                    metrics.record_error("sync_external")
                    logger.warning(
                        f"External sync skipped product: {e.message}",
                        extra={"product_id": product.get("id")},
                    )
                except Exception as e:
                    metrics.record_error("sync_external_provider")
                    logger.warning(
                        f"External sync provider failed: {e}",
                        extra={"product_id": product.get("id")},
                        exc_info=True,
                    )

        logger.info(
            "External sync finished",
            extra={"candidates": len(products), "updated": updated, "duration_ms": round(timer.elapsed_ms, 2)},
        )
        return updated
