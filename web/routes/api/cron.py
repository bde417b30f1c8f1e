"""
Scheduled maintenance endpoints.

Called by an external scheduler with the shared secret in the query string.
"""
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Request

from core.config import config
from core.exceptions import AuthenticationError
from core.store import get_client
from core.sync_service import SyncService
from ._deps import get_logger, limiter

router = APIRouter(prefix="/cron")
logger = get_logger(__name__)


def require_cron_secret(secret: Optional[str] = None) -> None:
    """Reject unless ?secret= matches CRON_SECRET. An unset secret rejects everything."""
    expected = config.cron.secret
    if not expected or not secret or not hmac.compare_digest(secret, expected):
        logger.warning("Cron call rejected: bad or missing secret")
        raise AuthenticationError()


@router.get("/refresh-best-sellers", dependencies=[Depends(require_cron_secret)])
@limiter.limit("10/minute")
async def refresh_best_sellers(request: Request, client=Depends(get_client)):
    await SyncService(client).refresh_best_sellers()
    return {"ok": True, "refreshed": True}


@router.get("/refresh-deals", dependencies=[Depends(require_cron_secret)])
@limiter.limit("10/minute")
async def refresh_deals(request: Request, client=Depends(get_client)):
    await SyncService(client).refresh_deals()
    return {"ok": True, "refreshed": True}


@router.get("/sync-external-products", dependencies=[Depends(require_cron_secret)])
@limiter.limit("2/minute")
async def sync_external_products(request: Request, client=Depends(get_client)):
    """Refresh price and stock of imported products; reports how many were updated."""
    updated = await SyncService(client).sync_external_products()
    return {"ok": True, "updated": updated}
