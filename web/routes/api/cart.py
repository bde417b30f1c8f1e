"""Shopping cart for signed-in customers. Guest carts live on the client."""
import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from core.exceptions import NotFoundError, ValidationError
from core.models import Actor
from core.repositories.cart_repo import CartRepository, empty_cart
from core.repositories.catalog_repo import CatalogRepository
from core.store import get_client
from web.routes.auth import get_current_actor, require_user
from ._deps import limiter, read_json

router = APIRouter()


def _product_id(payload: Dict[str, Any]) -> str:
    product_id = payload.get("productId")
    if not product_id or not isinstance(product_id, (str, int)):
        raise ValidationError("productId", "productId required")
    return str(product_id)


def _quantity(value: Any, minimum: int) -> Optional[int]:
    """Whole quantity floored at minimum; None when not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return max(minimum, math.floor(value))


@router.get("/cart")
@limiter.limit("120/minute")
async def get_cart(
    request: Request,
    actor: Optional[Actor] = Depends(get_current_actor),
    client=Depends(get_client),
):
    """The caller's cart with totals; guests get an empty cart."""
    if actor is None:
        return empty_cart()
    return await CartRepository(client).get_cart(actor.id)


@router.post("/cart")
@limiter.limit("60/minute")
async def add_to_cart(
    request: Request,
    actor: Actor = Depends(require_user),
    client=Depends(get_client),
):
    """Add a product (body: productId, quantity?) or increase its quantity."""
    payload = await read_json(request)
    product_id = _product_id(payload)
    raw = payload.get("quantity")
    quantity = 1 if raw is None else _quantity(raw, 1)
    if quantity is None:
        raise ValidationError("quantity", "Must be a number", raw)

    product = await CatalogRepository(client).get_active_product(product_id)
    if product is None:
        raise NotFoundError("Product not found or inactive")

    await CartRepository(client).add_item(actor.id, product_id, quantity)
    return {"ok": True}


@router.patch("/cart")
@limiter.limit("60/minute")
async def update_cart_item(
    request: Request,
    actor: Actor = Depends(require_user),
    client=Depends(get_client),
):
    """Set a line's quantity (body: productId, quantity); zero removes it."""
    payload = await read_json(request)
    product_id = _product_id(payload)
    quantity = _quantity(payload.get("quantity"), 0)
    if quantity is None:
        raise ValidationError("quantity", "productId and quantity required")

    await CartRepository(client).set_quantity(actor.id, product_id, quantity)
    return {"ok": True}


@router.delete("/cart")
@limiter.limit("60/minute")
async def remove_cart_item(
    request: Request,
    actor: Actor = Depends(require_user),
    client=Depends(get_client),
):
    payload = await read_json(request)
    await CartRepository(client).remove_item(actor.id, _product_id(payload))
    return {"ok": True}
