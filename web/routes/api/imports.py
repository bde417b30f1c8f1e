"""External product imports (admin only)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.import_service import ImportService
from core.models import Actor, PricingRules
from core.pagination import PageRequest
from core.providers import ExternalProduct
from core.repositories.imports_repo import ImportsRepository
from core.store import get_client
from web.routes.auth import require_admin
from web.schemas import ImportBatchIn, ImportUrlIn
from ._deps import get_logger, limiter

router = APIRouter()
logger = get_logger(__name__)


@router.post("/admin/imports/url")
@limiter.limit("20/minute")
async def import_by_url(
    request: Request,
    body: ImportUrlIn,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Import the product behind a marketplace URL, priced with the given rules."""
    rules = PricingRules.from_payload(body.pricingRules.model_dump() if body.pricingRules else None)
    product = await ImportService(client).import_by_url(body.url.strip(), rules)
    return {"ok": True, "product": product}


@router.post("/admin/imports/batch")
@limiter.limit("5/minute")
async def import_batch(
    request: Request,
    body: ImportBatchIn,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Import many products from one supplier under a tracked job."""
    rules = PricingRules.from_payload(body.pricing_payload())
    products = [ExternalProduct.from_payload(item.model_dump()) for item in body.products]
    result = await ImportService(client).import_batch(body.supplier.strip(), products, rules, admin.id)
    return {"ok": True, **result}


@router.get("/admin/imports/jobs")
@limiter.limit("60/minute")
async def list_import_jobs(
    request: Request,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Import jobs newest first."""
    window = PageRequest.parse(page, page_size, default_size=10, max_size=50, min_size=5)
    result = await ImportsRepository(client).list_jobs(window)
    return result.to_dict()
