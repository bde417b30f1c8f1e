"""
Pydantic models for API endpoints.

Most routes pass store rows straight through; the models here cover the
service endpoints (health, metrics) and the structured request bodies.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class StoreStatus(BaseModel):
    """Hosted store reachability."""
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    store: StoreStatus


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════════

class TimingStats(BaseModel):
    """Timing statistics for an operation."""
    count: int
    avg_ms: float
    min_ms: float
    max_ms: float
    p50_ms: float
    p95_ms: float


class MetricsResponse(BaseModel):
    """Application metrics response."""
    uptime_seconds: int
    correlation_id: Optional[str] = None
    requests: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, int] = Field(default_factory=dict)
    timing: Dict[str, TimingStats] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════════

class LoginRequest(BaseModel):
    """Password sign-in body."""
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════

class PricingRulesIn(BaseModel):
    """Margin rules in the camelCase shape the back-office sends."""
    strategy: str = "percent"
    percent: float = 0
    fixed: float = 0
    minMargin: float = 0
    roundTo: float = 0
    psychological: bool = False


class ExternalProductIn(BaseModel):
    """One marketplace product in a batch import."""
    external_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: float = Field(ge=0, description="Supplier cost")
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    stock_quantity: Optional[int] = None


class ImportUrlIn(BaseModel):
    """Single-product import from a marketplace URL."""
    url: str = Field(min_length=1)
    pricingRules: Optional[PricingRulesIn] = None


class ImportBatchIn(BaseModel):
    """Batch import of products from one supplier."""
    supplier: str = Field(min_length=1)
    products: List[ExternalProductIn] = Field(min_length=1)
    pricingRules: Optional[PricingRulesIn] = None

    def pricing_payload(self) -> Optional[Dict[str, Any]]:
        return self.pricingRules.model_dump() if self.pricingRules else None
