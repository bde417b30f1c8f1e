"""
Tests for core.queries module.
"""
import httpx
import pytest

from core.exceptions import StoreError
from core.pagination import PageRequest
from core.queries import ListQuery, ordered_join, rows_of, run, search_expression

from fakes import FakeResponse, FakeSupabase


def categories_db():
    return FakeSupabase({"categories": [
        {"id": "c1", "name": "Shoes", "slug": "shoes", "is_active": True, "created_at": "2026-01-01"},
        {"id": "c2", "name": "Shirts", "slug": "shirts", "is_active": False, "created_at": "2026-01-02"},
        {"id": "c3", "name": "Hats", "slug": "hats", "is_active": True, "created_at": "2026-01-03"},
        {"id": "c4", "name": "Socks", "slug": "socks", "is_active": True, "created_at": "2026-01-04"},
    ]})


class TestOrderedJoin:
    """Tests for ordered_join function."""

    def test_follows_ranking(self):
        rows = [{"id": "P1"}, {"id": "P2"}]
        assert ordered_join(["P2", "P1"], rows) == [{"id": "P2"}, {"id": "P1"}]

    def test_missing_rows_dropped(self):
        """A ranked id with no row is skipped, never padded."""
        assert ordered_join(["P2", "P1"], [{"id": "P2"}]) == [{"id": "P2"}]

    def test_unranked_rows_ignored(self):
        rows = [{"id": "P1"}, {"id": "P9"}]
        assert ordered_join(["P1"], rows) == [{"id": "P1"}]

    def test_custom_key(self):
        rows = [{"product_id": 1, "n": "a"}, {"product_id": 2, "n": "b"}]
        assert [r["n"] for r in ordered_join([2, 1], rows, key="product_id")] == ["b", "a"]


class TestHelpers:
    """Tests for small query helpers."""

    def test_search_expression(self):
        assert search_expression(["name", "slug"], "sho") == "name.ilike.%sho%,slug.ilike.%sho%"

    def test_rows_of(self):
        assert rows_of(None) == []
        assert rows_of(FakeResponse(None)) == []
        assert rows_of(FakeResponse({"id": 1})) == [{"id": 1}]
        assert rows_of(FakeResponse([{"id": 1}])) == [{"id": 1}]


class TestRun:
    """Tests for store error translation."""

    @pytest.mark.asyncio
    async def test_api_error_becomes_store_error(self):
        """The store's own message is kept."""
        db = FakeSupabase()
        db.fail("products_on_sale", "select", 'relation "products_on_sale" does not exist')

        with pytest.raises(StoreError) as exc_info:
            await run(db.table("products_on_sale").select("*"), "deals", "products_on_sale")

        assert exc_info.value.message == 'relation "products_on_sale" does not exist'
        assert exc_info.value.table == "products_on_sale"

    @pytest.mark.asyncio
    async def test_transport_error_becomes_store_error(self):
        class Unreachable:
            async def execute(self):
                raise httpx.ConnectError("connection refused")

        with pytest.raises(StoreError) as exc_info:
            await run(Unreachable(), "ping")
        assert "connection refused" in exc_info.value.message


class TestListQuery:
    """Tests for ListQuery against the in-memory store."""

    @pytest.mark.asyncio
    async def test_page_and_total(self):
        page = await (
            ListQuery("categories", PageRequest.parse("2", "3"))
            .order_by("created_at", descending=False)
            .fetch(categories_db())
        )
        assert [row["id"] for row in page.items] == ["c4"]
        assert page.total == 4
        assert page.total_pages == 2

    @pytest.mark.asyncio
    async def test_search_over_columns(self):
        page = await (
            ListQuery("categories", PageRequest())
            .search(["name", "slug"], "sh")
            .order_by("created_at", descending=False)
            .fetch(categories_db())
        )
        assert [row["id"] for row in page.items] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_where_skips_absent_filters(self):
        db = categories_db()
        page = await (
            ListQuery("categories", PageRequest())
            .where("is_active", True)
            .where("slug", None)
            .where("id", [], op="in_")
            .fetch(db)
        )
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_in_filter_and_raw_or(self):
        page = await (
            ListQuery("categories", PageRequest())
            .where("id", ["c1", "c2", "c3"], op="in_")
            .any_of("name.eq.Hats,slug.eq.shirts")
            .order_by("created_at")
            .fetch(categories_db())
        )
        assert [row["id"] for row in page.items] == ["c3", "c2"]

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            ListQuery("categories", PageRequest()).where("name", "x", op="like")
