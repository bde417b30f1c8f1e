"""
Unified pagination for list endpoints.

Every paginated read answers with the same envelope:
    {data|items, page, pageSize, total, totalPages}
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def _to_int(value: Any, default: int) -> int:
    """Parse an integer the lenient way query strings need ("3", " 3 ", "3.7")."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


@dataclass(frozen=True)
class PageRequest:
    """
    A bounded page window.

    Usage:
        window = PageRequest.parse(request.query_params.get("page"),
                                   request.query_params.get("pageSize"),
                                   max_size=100)
        builder.range(*window.bounds)
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def parse(
        cls,
        page: Any = None,
        page_size: Any = None,
        default_size: int = DEFAULT_PAGE_SIZE,
        max_size: int = 100,
        min_size: int = 1,
    ) -> "PageRequest":
        """
        Coerce untrusted page/pageSize values into their valid bounds.

        Args:
            page: Requested page number (floored at 1)
            page_size: Requested page size (clamped to [min_size, max_size])
            default_size: Size used when page_size is absent or unparsable
            max_size: Operation-specific ceiling
            min_size: Operation-specific floor

        Returns:
            PageRequest with page >= 1 and min_size <= page_size <= max_size
        """
        page_num = max(1, _to_int(page, 1))
        size = _to_int(page_size, default_size)
        size = min(max_size, max(min_size, size))
        return cls(page=page_num, page_size=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def bounds(self) -> Tuple[int, int]:
        """Inclusive (from, to) row indexes for a range read."""
        return self.offset, self.offset + self.page_size - 1


def total_pages(total: Optional[int], page_size: int) -> int:
    """
    Number of pages for a total.

    Zero or unknown totals still report one (empty) page.
    """
    if not total:
        return 1
    return math.ceil(total / page_size)


@dataclass
class Page:
    """One page of rows plus the counts needed for the envelope."""

    items: List[Dict[str, Any]]
    request: PageRequest
    total: int = 0

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.request.page_size)

    def to_dict(self, items_key: str = "data", **extra: Any) -> Dict[str, Any]:
        """
        Render the list envelope.

        Args:
            items_key: "data" for most endpoints, "items" for deals and brand products
            **extra: Additional top-level keys (e.g. brand, note)
        """
        envelope = {
            items_key: self.items,
            "page": self.request.page,
            "pageSize": self.request.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }
        for key, value in extra.items():
            if value is not None:
                envelope[key] = value
        return envelope
