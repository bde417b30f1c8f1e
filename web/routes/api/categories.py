"""Back-office category management."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.models import Actor
from core.repositories.catalog_repo import CatalogRepository
from core.store import get_client
from core.validators import validate_search_term
from web.routes.auth import require_admin
from ._deps import get_logger, limiter, page_request, read_json

router = APIRouter()
logger = get_logger(__name__)


@router.get("/admin/categories")
@limiter.limit("60/minute")
async def list_categories(
    request: Request,
    q: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Categories newest first with their product counts."""
    result = await CatalogRepository(client).list_categories(
        page_request(page, page_size),
        validate_search_term(q),
    )
    return result.to_dict()


@router.post("/admin/categories", status_code=201)
@limiter.limit("30/minute")
async def create_category(
    request: Request,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    payload = await read_json(request)
    row = await CatalogRepository(client).create_category(payload)
    return {"ok": True, "data": row}


@router.patch("/admin/categories/{category_id}")
@limiter.limit("30/minute")
async def update_category(
    request: Request,
    category_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Partial update of name, description, image_url and slug."""
    payload = await read_json(request)
    row = await CatalogRepository(client).update_category(category_id, payload)
    return {"data": row}


@router.delete("/admin/categories/{category_id}")
@limiter.limit("30/minute")
async def delete_category(
    request: Request,
    category_id: str,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    await CatalogRepository(client).delete_category(category_id)
    logger.info(f"Category {category_id} deleted by {admin.id}")
    return {"ok": True}
