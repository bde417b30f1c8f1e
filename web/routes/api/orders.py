"""Back-office order management."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.models import Actor
from core.repositories.orders_repo import ORDER_SORTS, OrdersRepository
from core.store import get_client
from core.validators import (
    is_descending,
    parse_filter,
    validate_date_string,
    validate_search_term,
    validate_sort,
)
from web.routes.auth import require_admin
from ._deps import get_logger, limiter, page_request, read_json

router = APIRouter()
logger = get_logger(__name__)


@router.get("/admin/orders")
@limiter.limit("60/minute")
async def list_orders(
    request: Request,
    q: Optional[str] = None,
    status: Optional[str] = None,
    payment: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """
    Paginated orders with the owner's name and email.

    Query params:
        q: Matches the order number or the owner's full name / email
        status / payment: Equality filters ("all" disables)
        start / end: ISO-8601 bounds on created_at
    """
    result = await OrdersRepository(client).list_orders(
        page_request(page, page_size),
        term=validate_search_term(q),
        status=parse_filter(status),
        payment=parse_filter(payment),
        start=validate_date_string(start, "start"),
        end=validate_date_string(end, "end"),
        sort=validate_sort(sort, ORDER_SORTS),
        descending=is_descending(order),
    )
    return result.to_dict()


@router.get("/admin/orders/{order_id}")
@limiter.limit("60/minute")
async def get_order(
    request: Request,
    order_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    return {"data": await OrdersRepository(client).get_order(order_id)}


@router.patch("/admin/orders/{order_id}")
@limiter.limit("30/minute")
async def update_order(
    request: Request,
    order_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Update status and/or payment_status."""
    payload = await read_json(request)
    row = await OrdersRepository(client).update_order(order_id, payload)
    logger.info(f"Order {order_id} updated by {admin.id}")
    return {"data": row}
