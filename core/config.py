"""
Centralized configuration for the Storefront API.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from core.config import config

    url = config.supabase.url
    secret = config.cron.secret
"""

import os
from dataclasses import dataclass, field
from typing import Dict

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SupabaseConfig:
    """Hosted database / auth configuration."""

    url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    service_role_key: str = field(default_factory=lambda: os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""))
    anon_key: str = field(default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", ""))
    postgrest_timeout: int = 20


@dataclass(frozen=True)
class WebConfig:
    """HTTP server and session configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "8080")))
    secret_key: str = field(default_factory=lambda: os.getenv("SESSION_SECRET_KEY", ""))
    cookie_secure: bool = field(default_factory=lambda: _env_flag("COOKIE_SECURE"))
    session_max_age: int = 7 * 24 * 60 * 60  # 7 days

    # Rate limiting
    rate_limit_enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", "true"))

    # Request timeouts (seconds); bulk jobs loop over many products
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "30")))
    bulk_request_timeout: float = field(default_factory=lambda: float(os.getenv("BULK_REQUEST_TIMEOUT", "300")))


@dataclass(frozen=True)
class LoggingConfig:
    """Log level and output format (LOG_FORMAT=json for JSON lines)."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_format: bool = field(default_factory=lambda: os.getenv("LOG_FORMAT", "text").strip().lower() == "json")


@dataclass(frozen=True)
class CronConfig:
    """Shared secret for the cron-triggered endpoints."""

    secret: str = field(default_factory=lambda: os.getenv("CRON_SECRET", ""))


@dataclass(frozen=True)
class CatalogConfig:
    """Catalog and listing limits."""

    # Per-listing page size ceilings
    max_page_sizes: Dict[str, int] = field(default_factory=lambda: {
        "admin": 100,
        "public": 60,
        "imports": 50,
    })
    low_stock_threshold: int = 10
    new_arrival_days: int = 7
    max_new_arrival_days: int = 3650
    search_limit: int = 6
    search_max_limit: int = 20

    def max_page_size(self, listing: str) -> int:
        """Get page size ceiling for a listing family."""
        return self.max_page_sizes.get(listing, 100)


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    web: WebConfig = field(default_factory=WebConfig)
    cron: CronConfig = field(default_factory=CronConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)


# Global config instance
config = AppConfig()


# ─── Convenience Exports ──────────────────────────────────────────────────────
VERSION = config.version
SUPABASE_URL = config.supabase.url
LOW_STOCK_THRESHOLD = config.catalog.low_stock_threshold


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(require_store: bool = True) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Args:
        require_store: If True, validate Supabase credentials

    Raises:
        ConfigurationError: If required configuration is missing
    """
    errors = []

    if require_store:
        if not config.supabase.url:
            errors.append("SUPABASE_URL is required but not set")
        elif not config.supabase.url.startswith(("http://", "https://")):
            errors.append("SUPABASE_URL must be an http(s) URL")
        if not config.supabase.service_role_key:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required but not set")
        if not config.supabase.anon_key:
            errors.append("SUPABASE_ANON_KEY is required but not set (used for password sign-in)")

    if not config.web.secret_key:
        errors.append("SESSION_SECRET_KEY is required but not set")
    elif len(config.web.secret_key) < 16:
        errors.append("SESSION_SECRET_KEY appears to be invalid (too short)")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
