"""
Domain models for storefront data.

Rows themselves travel as plain dicts straight from the store; the types here
cover the few places with real rules: actors, supplier types, order statuses,
bulk catalog actions and import pricing.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from core.exceptions import ValidationError


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive prices (Python's round() is banker's)."""
    return math.floor(value + 0.5)


# ═══════════════════════════════════════════════════════════════════════════════
# ACTORS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Actor:
    """An authenticated caller as resolved from the session and profile."""
    id: str
    role: str
    email: Optional[str] = None
    full_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "full_name": self.full_name, "role": self.role}


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class SupplierType(str, Enum):
    """Brand/supplier origin."""
    INTERNAL = "internal"
    ALIBABA = "alibaba"
    JUMIA = "jumia"
    OTHER = "other"

    @classmethod
    def values(cls) -> List[str]:
        return [t.value for t in cls]


class OrderStatus(str, Enum):
    """Order fulfilment statuses, in lifecycle order."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class BulkAction(str, Enum):
    """Actions accepted by the bulk catalog endpoint."""
    SET_ACTIVE = "setActive"
    SET_INACTIVE = "setInactive"
    SET_FEATURED = "setFeatured"
    UNSET_FEATURED = "unsetFeatured"
    APPLY_DISCOUNT_PERCENT = "applyDiscountPercent"
    RESET_PROMOTIONS = "resetPromotions"
    DELETE = "delete"

    @property
    def flag_update(self) -> Optional[Dict[str, bool]]:
        """Column update for the simple flag toggles, None for the others."""
        return {
            BulkAction.SET_ACTIVE: {"is_active": True},
            BulkAction.SET_INACTIVE: {"is_active": False},
            BulkAction.SET_FEATURED: {"is_featured": True},
            BulkAction.UNSET_FEATURED: {"is_featured": False},
        }.get(self)


# ═══════════════════════════════════════════════════════════════════════════════
# PROMOTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def discount_percent(price: Any, compare_price: Any) -> int:
    """Whole-percent discount of price against compare_price (0 when not on sale)."""
    try:
        price = float(price or 0)
        compare = float(compare_price) if compare_price is not None else None
    except (TypeError, ValueError):
        return 0
    if compare is None or compare <= 0 or price >= compare:
        return 0
    return round_half_up((compare - price) / compare * 100)


def apply_discount(row: Mapping[str, Any], percent: float) -> Dict[str, Any]:
    """
    Price update for a percentage markdown.

    compare_price keeps the pre-discount base (an existing compare_price wins
    over the current price, so repeated markdowns do not compound).
    """
    current = float(row.get("price") or 0)
    base = float(row.get("compare_price") or 0) or current
    new_compare = base if base > 0 else current
    new_price = max(0, round_half_up(new_compare * (1 - percent / 100)))
    return {"price": new_price, "compare_price": new_compare}


def reset_promotion(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Price update that undoes a markdown."""
    try:
        compare = float(row.get("compare_price"))
    except (TypeError, ValueError):
        compare = None
    if compare is not None and math.isfinite(compare) and compare > 0:
        return {"price": compare, "compare_price": None}
    return {"compare_price": None}


# ═══════════════════════════════════════════════════════════════════════════════
# IMPORT PRICING
# ═══════════════════════════════════════════════════════════════════════════════

PRICING_STRATEGIES = ("percent", "fixed", "hybrid")


@dataclass(frozen=True)
class PricingRules:
    """Margin rules applied to supplier cost when importing external products."""
    strategy: str = "percent"
    percent: float = 0
    fixed: float = 0
    min_margin: float = 0
    round_to: float = 0
    psychological: bool = False

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> Optional["PricingRules"]:
        """Build rules from the camelCase request shape; None means cost passes through."""
        if not payload:
            return None
        strategy = payload.get("strategy", "percent")
        if strategy not in PRICING_STRATEGIES:
            raise ValidationError("pricingRules.strategy", f"Must be one of: {', '.join(PRICING_STRATEGIES)}", strategy)
        try:
            return cls(
                strategy=strategy,
                percent=float(payload.get("percent") or 0),
                fixed=float(payload.get("fixed") or 0),
                min_margin=float(payload.get("minMargin") or 0),
                round_to=float(payload.get("roundTo") or 0),
                psychological=bool(payload.get("psychological", False)),
            )
        except (TypeError, ValueError):
            raise ValidationError("pricingRules", "Numeric fields must be numbers")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "percent": self.percent,
            "fixed": self.fixed,
            "minMargin": self.min_margin,
            "roundTo": self.round_to,
            "psychological": self.psychological,
        }

    def price_for(self, cost: float) -> int:
        """
        Selling price for a supplier cost.

        Margin is cost * percent, a fixed amount, or the larger of the two
        (hybrid), never below min_margin. The result is rounded to the nearest
        round_to step, optionally dropped by one for "psychological" pricing,
        and floored to a whole non-negative amount.
        """
        pct = max(0.0, self.percent) / 100
        fix = max(0.0, self.fixed)
        if self.strategy == "fixed":
            margin = fix
        elif self.strategy == "hybrid":
            margin = max(cost * pct, fix)
        else:
            margin = cost * pct
        if self.min_margin:
            margin = max(margin, self.min_margin)

        price = cost + margin
        if self.round_to > 0:
            price = round_half_up(price / self.round_to) * self.round_to
        if self.psychological:
            price = max(0, math.floor(price) - 1)
        return max(0, math.floor(price))


def compute_price(cost: float, rules: Optional[PricingRules]) -> int:
    """Selling price for cost, or the floored cost when no rules are given."""
    if rules is None:
        return max(0, math.floor(cost))
    return rules.price_for(cost)


# ═══════════════════════════════════════════════════════════════════════════════
# EXTERNAL PROVIDERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProviderInfo:
    """A marketplace recognised from a product URL."""
    key: str
    label: str
    website: Optional[str] = None


_KNOWN_PROVIDERS = (
    ProviderInfo("aliexpress", "AliExpress", "https://aliexpress.com"),
    ProviderInfo("alibaba", "Alibaba", "https://alibaba.com"),
    ProviderInfo("jumia", "Jumia", "https://jumia.com"),
)
OTHER_PROVIDER = ProviderInfo("other", "External Supplier")


def detect_provider(url: str) -> ProviderInfo:
    """Recognise the marketplace behind a product URL by host name."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return OTHER_PROVIDER
    for provider in _KNOWN_PROVIDERS:
        if provider.key in host:
            return provider
    return OTHER_PROVIDER


def supplier_type_for(provider: ProviderInfo) -> str:
    """Map a provider onto the supplier type enumeration."""
    if provider.key in SupplierType.values():
        return provider.key
    return SupplierType.OTHER.value
