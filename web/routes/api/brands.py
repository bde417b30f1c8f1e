"""Brands on the storefront and supplier management in the back-office."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.models import Actor, SupplierType
from core.repositories.brands_repo import ADMIN_SUPPLIER_SORTS, BrandsRepository
from core.store import get_client
from core.validators import (
    is_descending,
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

PUBLIC_PAGE_SIZE = 24


# ─── Storefront ───────────────────────────────────────────────────────────────

@router.get("/brands")
@limiter.limit("120/minute")
async def list_brands(
    request: Request,
    q: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    client=Depends(get_client),
):
    """Active brands; sort is name, newest or oldest."""
    result = await BrandsRepository(client).list_brands(
        page_request(page, page_size, listing="public", default_size=PUBLIC_PAGE_SIZE),
        term=validate_search_term(q),
        sort=sort or "name",
    )
    return result.to_dict()


@router.get("/brands/{slug}")
@limiter.limit("120/minute")
async def get_brand(request: Request, slug: str, client=Depends(get_client)):
    return {"brand": await BrandsRepository(client).get_brand(slug)}


@router.get("/brands/{slug}/products")
@limiter.limit("120/minute")
async def brand_products(
    request: Request,
    slug: str,
    in_stock: Optional[str] = Query(None, alias="inStock"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    sort: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    client=Depends(get_client),
):
    """Active products of one brand, looked up by slug or id."""
    repo = BrandsRepository(client)
    brand = await repo.resolve_brand(slug)
    result = await repo.brand_products(
        brand["id"],
        page_request(page, page_size, listing="public", default_size=PUBLIC_PAGE_SIZE),
        in_stock=bool(parse_flag(in_stock)),
        min_price=parse_number(min_price),
        max_price=parse_number(max_price),
        sort=sort or "newest",
    )
    return result.to_dict(items_key="items", brand=brand)


# ─── Back-office suppliers ────────────────────────────────────────────────────

@router.get("/admin/suppliers")
@limiter.limit("60/minute")
async def list_suppliers(
    request: Request,
    q: Optional[str] = None,
    type: Optional[str] = None,
    active: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    supplier_type = parse_filter(type)
    result = await BrandsRepository(client).list_suppliers(
        page_request(page, page_size),
        term=validate_search_term(q),
        supplier_type=supplier_type if supplier_type in SupplierType.values() else None,
        active=parse_flag(active),
        sort=validate_sort(sort, ADMIN_SUPPLIER_SORTS, default="name"),
        descending=order is not None and is_descending(order),
    )
    return result.to_dict()


@router.post("/admin/suppliers", status_code=201)
@limiter.limit("30/minute")
async def create_supplier(
    request: Request,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    payload = await read_json(request)
    row = await BrandsRepository(client).create_supplier(payload)
    return {"ok": True, "data": row}


@router.patch("/admin/suppliers/{supplier_id}")
@limiter.limit("30/minute")
async def update_supplier(
    request: Request,
    supplier_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    payload = await read_json(request)
    row = await BrandsRepository(client).update_supplier(supplier_id, payload)
    return {"data": row}


@router.delete("/admin/suppliers/{supplier_id}")
@limiter.limit("30/minute")
async def delete_supplier(
    request: Request,
    supplier_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    await BrandsRepository(client).delete_supplier(supplier_id)
    logger.info(f"Supplier {supplier_id} deleted by {admin.id}")
    return {"ok": True}
