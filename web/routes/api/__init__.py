"""
API routes split by domain.

Each sub-module defines its own APIRouter which is composed
into the top-level router exposed by this package.
"""
from fastapi import APIRouter

from .health import router as health_router
from .categories import router as categories_router
from .products import router as products_router
from .orders import router as orders_router
from .users import router as users_router
from .brands import router as brands_router
from .deals import router as deals_router
from .dashboard import router as dashboard_router
from .imports import router as imports_router
from .analytics import router as analytics_router
from .search import router as search_router
from .cart import router as cart_router
from .cron import router as cron_router

router = APIRouter(tags=["api"])

router.include_router(health_router)
router.include_router(categories_router)
router.include_router(products_router)
router.include_router(orders_router)
router.include_router(users_router)
router.include_router(brands_router)
router.include_router(deals_router)
router.include_router(dashboard_router)
router.include_router(imports_router)
router.include_router(analytics_router)
router.include_router(search_router)
router.include_router(cart_router)
router.include_router(cron_router)
