"""
External catalog providers.

A provider answers two questions about marketplace products: what is behind a
product URL (used by URL imports), and what are the current price and stock
of a product we already imported (used by the external sync job).

No marketplace integration is wired yet; MockCatalogProvider stands in with
randomized values so imports and the sync job can run end to end.
"""
import math
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from core.models import detect_provider


@dataclass(frozen=True)
class ExternalProduct:
    """A product as described by an external marketplace."""
    external_id: str
    name: str
    price: float
    description: str = ""
    image_url: Optional[str] = None
    category: str = "Auto"
    supplier_name: str = ""
    stock_quantity: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExternalProduct":
        return cls(
            external_id=str(payload["external_id"]),
            name=str(payload["name"]),
            price=float(payload.get("price") or 0),
            description=str(payload.get("description") or ""),
            image_url=payload.get("image_url"),
            category=str(payload.get("category") or "Auto"),
            supplier_name=str(payload.get("supplier_name") or ""),
            stock_quantity=int(payload.get("stock_quantity") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "image_url": self.image_url,
            "category": self.category,
            "supplier_name": self.supplier_name,
            "stock_quantity": self.stock_quantity,
        }


@dataclass(frozen=True)
class StockQuote:
    """Current price and stock of an external product."""
    price: float
    stock_quantity: int


class ExternalCatalogProvider(ABC):
    """Interface to an external product catalog."""

    @abstractmethod
    async def fetch_product(self, url: str) -> ExternalProduct:
        """Describe the product behind a marketplace URL."""

    @abstractmethod
    async def fetch_quote(self, product: Mapping[str, Any]) -> Optional[StockQuote]:
        """
        Current price/stock for an imported product row.

        Returns None when the provider has nothing new for this product.
        """


class MockCatalogProvider(ExternalCatalogProvider):
    """
    Randomized stand-in provider.

    Quotes drift the stored values: price by up to +/-1000 (never under 500),
    stock by up to +/-15 (never negative).
    """

    MIN_PRICE = 500
    PRICE_SWING = 2000
    STOCK_SWING = 30

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    async def fetch_product(self, url: str) -> ExternalProduct:
        provider = detect_provider(url)
        return ExternalProduct(
            external_id=f"{provider.key}_{int(time.time() * 1000)}",
            name=f"Imported product ({provider.label})",
            description="Product imported from a supplier URL. Details are synchronized later.",
            price=self.rng.randint(3000, 27999),
            image_url=f"/placeholder.svg?height=420&width=420&query={quote(provider.label + ' product')}",
            category="Auto",
            supplier_name=provider.label,
            stock_quantity=self.rng.randint(5, 204),
        )

    async def fetch_quote(self, product: Mapping[str, Any]) -> Optional[StockQuote]:
        price = float(product.get("price") or 0)
        stock = int(product.get("stock_quantity") or 0)
        new_price = max(self.MIN_PRICE, price + math.floor((self.rng.random() - 0.5) * self.PRICE_SWING))
        new_stock = max(0, stock + math.floor((self.rng.random() - 0.5) * self.STOCK_SWING))
        return StockQuote(price=new_price, stock_quantity=new_stock)


_provider: Optional[ExternalCatalogProvider] = None


def get_provider() -> ExternalCatalogProvider:
    """Get the process-wide catalog provider."""
    global _provider
    if _provider is None:
        _provider = MockCatalogProvider()
    return _provider
