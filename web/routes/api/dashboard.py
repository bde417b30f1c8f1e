"""Back-office dashboard summary."""
from fastapi import APIRouter, Depends, Request

from core.models import Actor
from core.observability import Timer
from core.repositories.dashboard_repo import DashboardRepository
from core.store import get_client
from web.routes.auth import require_admin
from ._deps import get_logger, limiter

router = APIRouter()
logger = get_logger(__name__)


@router.get("/admin/dashboard")
@limiter.limit("30/minute")
async def get_dashboard(
    request: Request,
    admin: Actor = Depends(require_admin),
    client=Depends(get_client),
):
    """Totals, last six months of revenue, orders by status, recent orders and low stock."""
    with Timer("admin_dashboard", logger, metric="admin.dashboard"):
        return await DashboardRepository(client).summary()
