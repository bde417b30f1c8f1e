"""
Repository layer over the hosted store.

One repository per area of the schema:
- BaseRepository: Shared client and single-row helpers
- CatalogRepository: Categories, products, bulk actions, quick search
- BrandsRepository: Brands (read view) and suppliers
- OrdersRepository: Orders with owner profiles and line items
- UsersRepository: Profiles and roles
- DealsRepository: Ranked and back-office deal listings
- AnalyticsRepository: Storefront events
- CartRepository: Signed-in shopping carts
- DashboardRepository: Back-office aggregates
- ImportsRepository: External import jobs
"""
from core.repositories.base import BaseRepository
from core.repositories.catalog_repo import CatalogRepository
from core.repositories.brands_repo import BrandsRepository
from core.repositories.orders_repo import OrdersRepository
from core.repositories.users_repo import UsersRepository
from core.repositories.deals_repo import DealsRepository
from core.repositories.analytics_repo import AnalyticsRepository
from core.repositories.cart_repo import CartRepository
from core.repositories.dashboard_repo import DashboardRepository
from core.repositories.imports_repo import ImportsRepository

__all__ = [
    "BaseRepository",
    "CatalogRepository",
    "BrandsRepository",
    "OrdersRepository",
    "UsersRepository",
    "DealsRepository",
    "AnalyticsRepository",
    "CartRepository",
    "DashboardRepository",
    "ImportsRepository",
]
