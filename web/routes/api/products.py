"""Catalog products: back-office management, bulk actions, and the storefront listing."""
import math
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request

from core.config import config
from core.exceptions import ValidationError
from core.models import Actor, BulkAction
from core.repositories.catalog_repo import ADMIN_PRODUCT_SORTS, CatalogRepository
from core.store import get_client
from core.validators import (
    is_descending,
    parse_csv,
    parse_filter,
    parse_flag,
    parse_number,
    validate_search_term,
    validate_sort,
)
from web.routes.auth import require_admin
from ._deps import get_logger, limiter, page_request, read_json

router = APIRouter()
logger = get_logger(__name__)

STOCK_FILTERS = ("low", "out")


def parse_bulk(payload: Dict[str, Any]) -> Tuple[list, BulkAction, Optional[float]]:
    """
    Validate a bulk action body.

    Returns:
        (ids, action, percent) where percent is set only for discounts

    Raises:
        ValidationError: On missing ids, an unknown action or a bad percent
    """
    ids = payload.get("ids")
    if not isinstance(ids, list) or not ids:
        raise ValidationError("ids", "No ids provided")

    try:
        action = BulkAction(str(payload.get("action") or ""))
    except ValueError:
        raise ValidationError("action", "Unknown action", payload.get("action"))

    percent = None
    if action is BulkAction.APPLY_DISCOUNT_PERCENT:
        try:
            percent = float(payload.get("percent"))
        except (TypeError, ValueError):
            raise ValidationError("percent", "Invalid percent", payload.get("percent"))
        if not math.isfinite(percent) or percent <= 0 or percent >= 100:
            raise ValidationError("percent", "Invalid percent", payload.get("percent"))
    return [str(i) for i in ids], action, percent


# ─── Back-office ──────────────────────────────────────────────────────────────

@router.get("/admin/products")
@limiter.limit("60/minute")
async def list_products_admin(
    request: Request,
    q: Optional[str] = None,
    active: Optional[str] = None,
    featured: Optional[str] = None,
    stock: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """
    Back-office product listing.

    Query params:
        q: Matches name or SKU
        active / featured: Boolean flags ("true" / "false")
        stock: "low" or "out"
        sort: created_at, name, price or stock_quantity
    """
    stock_filter = parse_filter(stock)
    result = await CatalogRepository(client).list_products_admin(
        page_request(page, page_size),
        term=validate_search_term(q),
        active=parse_flag(active),
        featured=parse_flag(featured),
        stock=stock_filter if stock_filter in STOCK_FILTERS else None,
        sort=validate_sort(sort, ADMIN_PRODUCT_SORTS),
        descending=is_descending(order),
    )
    return result.to_dict()


@router.get("/admin/products/{product_id}")
@limiter.limit("60/minute")
async def get_product(
    request: Request,
    product_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    return {"data": await CatalogRepository(client).get_product(product_id)}


@router.post("/admin/products", status_code=201)
@limiter.limit("30/minute")
async def create_product(
    request: Request,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    payload = await read_json(request)
    row = await CatalogRepository(client).create_product(payload)
    return {"ok": True, "data": row}


@router.post("/admin/products/bulk")
@limiter.limit("10/minute")
async def bulk_products(
    request: Request,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Apply one action to many products: flags, promotions or delete."""
    ids, action, percent = parse_bulk(await read_json(request))
    applied = await CatalogRepository(client).bulk_update(ids, action, percent)
    logger.info(
        f"Bulk {action.value} by {admin.id}",
        extra={"requested": len(ids), "applied": applied},
    )
    return {"ok": True, "updated": applied}


@router.patch("/admin/products/{product_id}")
@limiter.limit("30/minute")
async def update_product(
    request: Request,
    product_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Whitelisted partial update; numbers are coerced and stock is clamped at zero."""
    payload = await read_json(request)
    row = await CatalogRepository(client).update_product(product_id, payload)
    return {"data": row}


@router.delete("/admin/products/{product_id}")
@limiter.limit("30/minute")
async def delete_product(
    request: Request,
    product_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    await CatalogRepository(client).delete_product(product_id)
    logger.info(f"Product {product_id} deleted by {admin.id}")
    return {"ok": True}


# ─── Storefront ───────────────────────────────────────────────────────────────

@router.get("/products")
@limiter.limit("120/minute")
async def list_products(
    request: Request,
    q: Optional[str] = None,
    categories: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    featured: Optional[str] = None,
    on_sale: Optional[str] = Query(None, alias="onSale"),
    only_new: Optional[str] = Query(None, alias="onlyNew"),
    new_days: Optional[str] = Query(None, alias="newDays"),
    sort: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    client=Depends(get_client),
):
    """Active products with storefront filters and sort keys."""
    days = parse_number(new_days)
    if days:
        days = int(min(max(days, 1), config.catalog.max_new_arrival_days))
    result = await CatalogRepository(client).list_products_public(
        page_request(page, page_size, listing="public"),
        term=validate_search_term(q),
        categories=parse_csv(categories),
        min_price=parse_number(min_price),
        max_price=parse_number(max_price),
        in_stock=bool(parse_flag(in_stock)),
        featured=bool(parse_flag(featured)),
        on_sale=bool(parse_flag(on_sale)),
        only_new=bool(parse_flag(only_new)),
        new_days=days or config.catalog.new_arrival_days,
        sort=sort or "newest",
    )
    return result.to_dict()
