"""Shared dependencies for API route modules."""
import logging
import time
from typing import Any, Dict

import orjson
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import config
from core.exceptions import ValidationError
from core.pagination import DEFAULT_PAGE_SIZE, PageRequest
from core.validators import require_object

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address, enabled=config.web.rate_limit_enabled)


# Shared logger factory
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# Track startup time for uptime calculation
START_TIME = time.time()


async def read_json(request: Request) -> Dict[str, Any]:
    """
    Decode a JSON object body.

    Raises:
        ValidationError: If the body is not valid JSON or not an object
    """
    raw = await request.body()
    try:
        payload = orjson.loads(raw) if raw else None
    except orjson.JSONDecodeError:
        raise ValidationError("body", "Invalid JSON")
    return require_object(payload)


def page_request(
    page: Any,
    page_size: Any,
    listing: str = "admin",
    default_size: int = DEFAULT_PAGE_SIZE,
) -> PageRequest:
    """Page window bounded by the listing family's configured ceiling."""
    return PageRequest.parse(
        page,
        page_size,
        default_size=default_size,
        max_size=config.catalog.max_page_size(listing),
    )


def client_ip(request: Request) -> str:
    """Caller address: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else ""
