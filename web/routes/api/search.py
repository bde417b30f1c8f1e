"""Storefront quick search."""
from typing import Optional

from fastapi import APIRouter, Depends, Request

from core.config import config
from core.repositories.catalog_repo import CatalogRepository
from core.store import get_client
from core.validators import parse_number, validate_search_term
from ._deps import limiter

router = APIRouter()


def search_limit(value: Optional[str]) -> int:
    """Result cap per collection, clamped to [1, search_max_limit]."""
    number = parse_number(value)
    if number is None:
        return config.catalog.search_limit
    return min(config.catalog.search_max_limit, max(1, int(number)))


@router.get("/search")
@limiter.limit("120/minute")
async def search(
    request: Request,
    q: Optional[str] = None,
    limit: Optional[str] = None,
    client=Depends(get_client),
):
    """Matching products and categories; a blank term answers without a store call."""
    term = validate_search_term(q)
    if not term:
        return {"products": [], "categories": []}
    return await CatalogRepository(client).search(term, search_limit(limit))
