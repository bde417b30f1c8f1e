"""Deals: the ranked storefront listing and the back-office view."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.models import Actor
from core.repositories.deals_repo import ADMIN_DEAL_SORTS, DealsRepository
from core.store import get_client
from core.validators import is_descending, parse_number, validate_search_term, validate_sort
from web.routes.auth import require_admin
from ._deps import limiter, page_request

router = APIRouter()

PUBLIC_PAGE_SIZE = 24
ADMIN_PAGE_SIZE = 100


def _min_discount(value: Optional[str]) -> float:
    return max(0.0, parse_number(value) or 0.0)


@router.get("/deals")
@limiter.limit("120/minute")
async def list_deals(
    request: Request,
    min_discount: Optional[str] = Query(None, alias="minDiscount"),
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    client=Depends(get_client),
):
    """Products on deal, highest discount first."""
    result = await DealsRepository(client).ranked_deals(
        page_request(page, page_size, listing="public", default_size=PUBLIC_PAGE_SIZE),
        min_discount=_min_discount(min_discount),
    )
    return result.to_dict(items_key="items")


@router.get("/admin/deals")
@limiter.limit("60/minute")
async def list_admin_deals(
    request: Request,
    q: Optional[str] = None,
    min_discount: Optional[str] = Query(None, alias="minDiscount"),
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """
    Active products on sale with their discount percentage.

    The response carries a `note` when the on-sale view could not be used.
    """
    result, note = await DealsRepository(client).admin_deals(
        page_request(page, page_size, default_size=ADMIN_PAGE_SIZE),
        term=validate_search_term(q),
        min_discount=_min_discount(min_discount),
        sort=validate_sort((sort or "").lower() or None, ADMIN_DEAL_SORTS),
        descending=is_descending(order),
    )
    return result.to_dict(note=note)
