"""Storefront analytics events: public capture, admin listing and purge."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import ValidationError
from core.models import Actor
from core.repositories.analytics_repo import AnalyticsRepository
from core.store import get_client
from core.validators import parse_filter, validate_date_string
from web.routes.auth import require_admin_forbidden
from ._deps import client_ip, get_logger, limiter, page_request, read_json

router = APIRouter()
logger = get_logger(__name__)


@router.post("/analytics")
@limiter.limit("120/minute")
async def record_event(request: Request, client=Depends(get_client)):
    """
    Record one storefront event.

    Body: {name, props?, user_id?}. The caller's address and user agent are
    captured from the request.
    """
    payload = await read_json(request)
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        raise ValidationError("name", "Missing event name")

    props = payload.get("props")
    await AnalyticsRepository(client).record_event(
        name,
        props=props if isinstance(props, dict) else None,
        user_id=payload.get("user_id") if isinstance(payload.get("user_id"), str) else None,
        ip=client_ip(request),
        ua=request.headers.get("user-agent"),
    )
    return {"ok": True}


@router.get("/analytics")
@limiter.limit("60/minute")
async def list_events(
    request: Request,
    name: Optional[str] = None,
    user_id: Optional[str] = None,
    ip: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin_forbidden),
    client=Depends(get_client),
):
    """Events newest first (admin only)."""
    result = await AnalyticsRepository(client).list_events(
        page_request(page, page_size),
        name=parse_filter(name),
        user_id=parse_filter(user_id),
        ip=parse_filter(ip),
        start=validate_date_string(start, "start"),
        end=validate_date_string(end, "end"),
    )
    return result.to_dict()


@router.delete("/analytics")
@limiter.limit("10/minute")
async def purge_events(
    request: Request,
    name: Optional[str] = None,
    admin: Actor = Depends(require_admin_forbidden),
    client=Depends(get_client),
):
    """Delete events, all of them or only those with one name (admin only)."""
    await AnalyticsRepository(client).purge_events(parse_filter(name))
    logger.warning(f"Analytics events purged by {admin.id}", extra={"event": name or "*"})
    return {"ok": True}
