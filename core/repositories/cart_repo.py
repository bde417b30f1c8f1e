"""Shopping cart repository for signed-in customers."""
from typing import Any, Dict

from core.exceptions import NotFoundError
from core.observability import get_logger
from core.queries import run
from core.repositories.base import BaseRepository

logger = get_logger(__name__)

CART_TABLE = "shopping_cart"


def empty_cart(guest: bool = True) -> Dict[str, Any]:
    return {"items": [], "totalItems": 0, "totalPrice": 0, "guest": guest}


class CartRepository(BaseRepository):
    """Repository for shopping_cart lines."""

    async def get_cart(self, user_id: str) -> Dict[str, Any]:
        """Cart lines (with product and category) plus item and price totals."""
        items = await self.fetch_all(
            self.table(CART_TABLE)
            .select("*, products (*, categories (*))")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "get_cart",
            CART_TABLE,
        )
        total_items = sum(item.get("quantity") or 0 for item in items)
        total_price = sum(
            ((item.get("products") or {}).get("price") or 0) * (item.get("quantity") or 0)
            for item in items
        )
        return {"items": items, "totalItems": total_items, "totalPrice": total_price, "guest": False}

    async def _line(self, user_id: str, product_id: str):
        return await self.fetch_one(
            self.table(CART_TABLE).select("*").eq("user_id", user_id).eq("product_id", product_id).maybe_single(),
            "get_cart_line",
            CART_TABLE,
        )

    async def add_item(self, user_id: str, product_id: str, quantity: int) -> None:
        """Add quantity of a product, merging into an existing line."""
        existing = await self._line(user_id, product_id)
        if existing:
            await run(
                self.table(CART_TABLE).update({"quantity": existing["quantity"] + quantity}).eq("id", existing["id"]),
                "cart_increase",
                CART_TABLE,
            )
        else:
            await self.insert_row(CART_TABLE, {"user_id": user_id, "product_id": product_id, "quantity": quantity})

    async def set_quantity(self, user_id: str, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero removes the line."""
        existing = await self._line(user_id, product_id)
        if existing is None:
            raise NotFoundError("Cart item not found")
        if quantity <= 0:
            await self.delete_by_id(CART_TABLE, existing["id"])
        else:
            await run(
                self.table(CART_TABLE).update({"quantity": quantity}).eq("id", existing["id"]),
                "cart_set_quantity",
                CART_TABLE,
            )

    async def remove_item(self, user_id: str, product_id: str) -> None:
        await run(
            self.table(CART_TABLE).delete().eq("user_id", user_id).eq("product_id", product_id),
            "cart_remove",
            CART_TABLE,
        )
