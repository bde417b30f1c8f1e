"""
Parameter-driven list queries against the hosted store.

A ListQuery collects the pieces every listing endpoint shares (free-text
search over a column whitelist, optional structured filters, a validated sort
and a page window) and runs them as one counted, ranged read.

Usage:
    query = (
        ListQuery("categories", PageRequest.parse(page, page_size))
        .search(["name", "slug"], term)
        .where("is_active", parse_flag(active))
        .order_by("created_at", descending=True)
    )
    page = await query.fetch(client)
    return page.to_dict()
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx
from postgrest.exceptions import APIError

from core.exceptions import StoreError
from core.observability import Timer, get_logger, metrics
from core.pagination import Page, PageRequest

logger = get_logger(__name__)

# Filter operators understood by ListQuery.where (postgrest builder method names)
FILTER_OPS = ("eq", "neq", "gt", "gte", "lt", "lte", "in_")


async def run(builder, operation: str, table: Optional[str] = None):
    """
    Execute a prepared request builder.

    Store and transport failures surface as StoreError carrying the store's
    own message, which the API passes through to the caller.

    Args:
        builder: A postgrest request builder (or rpc call) ready to execute
        operation: Short name used in timing logs and metrics
        table: Table or view name, for error context

    Returns:
        The postgrest APIResponse (None for an empty maybe_single read)
    """
    with Timer(operation, logger, metric=f"store.{operation}"):
        try:
            response = await builder.execute()
        except APIError as e:
            metrics.record_error("store")
            logger.error(
                f"Store error in {operation}: {e.message}",
                extra={"table": table, "code": e.code},
            )
            raise StoreError(e.message or "Store error", details=e.details, code=e.code, table=table) from e
        except httpx.HTTPError as e:
            metrics.record_error("store_transport")
            logger.error(f"Store unreachable in {operation}: {e}", extra={"table": table})
            raise StoreError(str(e) or "Store unavailable", table=table) from e
    return response


def rows_of(response) -> List[Dict[str, Any]]:
    """Row list of a response (empty for a missing maybe_single row)."""
    if response is None or response.data is None:
        return []
    if isinstance(response.data, list):
        return response.data
    return [response.data]


def search_expression(columns: Sequence[str], term: str) -> str:
    """PostgREST `or` expression matching term anywhere in any of the columns."""
    return ",".join(f"{column}.ilike.%{term}%" for column in columns)


@dataclass
class ListQuery:
    """A counted, ranged, optionally searched/filtered/sorted read of one table."""

    table: str
    request: PageRequest
    select: str = "*"
    _search: Tuple[Sequence[str], str] = field(default=((), ""), repr=False)
    _filters: List[Tuple[str, str, Any]] = field(default_factory=list, repr=False)
    _raw_or: List[str] = field(default_factory=list, repr=False)
    _sort: Optional[Tuple[str, bool]] = field(default=None, repr=False)

    def search(self, columns: Sequence[str], term: Optional[str]) -> "ListQuery":
        """Case-insensitive partial match on any of columns; blank term is a no-op."""
        if term:
            self._search = (tuple(columns), term)
        return self

    def where(self, column: str, value: Any, op: str = "eq") -> "ListQuery":
        """Add a structured filter; None (absent / "all") and empty lists are skipped."""
        if op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if value is None:
            return self
        if op == "in_" and not value:
            return self
        self._filters.append((op, column, value))
        return self

    def any_of(self, expression: Optional[str]) -> "ListQuery":
        """Add a raw PostgREST `or` expression (already sanitized by the caller)."""
        if expression:
            self._raw_or.append(expression)
        return self

    def order_by(self, column: str, descending: bool = True) -> "ListQuery":
        self._sort = (column, descending)
        return self

    def apply(self, builder):
        """Apply search, filters, and sort to a select builder (range is left to the caller)."""
        columns, term = self._search
        if term and columns:
            if len(columns) == 1:
                builder = builder.ilike(columns[0], f"%{term}%")
            else:
                builder = builder.or_(search_expression(columns, term))
        for expression in self._raw_or:
            builder = builder.or_(expression)
        for op, column, value in self._filters:
            if op == "in_":
                builder = builder.in_(column, list(value))
            else:
                builder = getattr(builder, op)(column, value)
        if self._sort:
            column, descending = self._sort
            builder = builder.order(column, desc=descending)
        return builder

    async def fetch(self, client) -> Page:
        """Run the query as a single `count=exact` ranged read."""
        builder = client.table(self.table).select(self.select, count="exact")
        builder = self.apply(builder).range(*self.request.bounds)
        response = await run(builder, f"list_{self.table}", self.table)
        return Page(items=rows_of(response), request=self.request, total=response.count or 0)


def ordered_join(
    ranked_ids: Iterable[Any],
    rows: Iterable[Dict[str, Any]],
    key: str = "id",
) -> List[Dict[str, Any]]:
    """
    Arrange rows in the order of ranked_ids.

    Ids with no matching row are dropped; rows whose id was not ranked are
    ignored. The result never holds more entries than ranked_ids.
    """
    by_id = {row.get(key): row for row in rows}
    return [by_id[row_id] for row_id in ranked_ids if row_id in by_id]
