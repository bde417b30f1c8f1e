"""
Back-office dashboard aggregates.

Revenue and status breakdowns are computed in process from one read of the
orders table.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from core.config import config
from core.models import OrderStatus
from core.observability import get_logger
from core.queries import run
from core.repositories.base import BaseRepository
from core.repositories.orders_repo import OrdersRepository

logger = get_logger(__name__)

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
RECENT_ORDERS = 5
LOW_STOCK_PRODUCTS = 5


def _amount(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _month_of(value: Any) -> int:
    """Zero-based month of an ISO timestamp, -1 when unparsable."""
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).month - 1
    except ValueError:
        return -1


def monthly_revenue(orders: Iterable[Mapping[str, Any]], now: datetime = None, months: int = 6) -> List[Dict[str, Any]]:
    """Revenue per calendar month for the last `months` months, oldest first."""
    now = now or datetime.now(timezone.utc)
    buckets = [0.0] * 12
    for order in orders:
        month = _month_of(order.get("created_at"))
        if month >= 0:
            buckets[month] += _amount(order.get("total_amount"))
    current = now.month - 1
    window = [(current - (months - 1 - i)) % 12 for i in range(months)]
    return [{"month": MONTHS[m], "revenue": buckets[m]} for m in window]


def status_breakdown(orders: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Order count per lifecycle status; every status is listed."""
    counts = {status: 0 for status in OrderStatus}
    for order in orders:
        try:
            counts[OrderStatus(order.get("status"))] += 1
        except ValueError:
            continue
    return [{"name": status.display_name, "value": count} for status, count in counts.items()]


class DashboardRepository(BaseRepository):
    """Read-only aggregates for the back-office home page."""

    async def summary(self) -> Dict[str, Any]:
        total_products = await self.count("products")
        total_users = await self.count("profiles")

        response = await run(
            self.table("orders").select("id, total_amount, status, created_at", count="exact"),
            "dashboard_orders",
            "orders",
        )
        orders = response.data or []

        recent = await self.fetch_all(
            self.table("orders").select("*").order("created_at", desc=True).limit(RECENT_ORDERS),
            "dashboard_recent_orders",
            "orders",
        )
        recent = await OrdersRepository(self.client).attach_owners(recent)

        low_stock = await self.fetch_all(
            self.table("products")
            .select("*")
            .eq("is_active", True)
            .lte("stock_quantity", config.catalog.low_stock_threshold)
            .order("stock_quantity", desc=False)
            .limit(LOW_STOCK_PRODUCTS),
            "dashboard_low_stock",
            "products",
        )

        return {
            "totalProducts": total_products,
            "totalOrders": response.count or len(orders),
            "totalUsers": total_users,
            "totalRevenue": sum(_amount(order.get("total_amount")) for order in orders),
            "recentOrders": recent,
            "lowStockProducts": low_stock,
            "monthlyRevenue": monthly_revenue(orders),
            "ordersByStatus": status_breakdown(orders),
        }
