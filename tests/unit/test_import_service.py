"""
Tests for core.import_service module.
"""
import pytest

from core.exceptions import StoreError
from core.import_service import ImportService
from core.models import PricingRules
from core.providers import ExternalCatalogProvider, ExternalProduct
from core.repositories.imports_repo import job_status

from fakes import FakeSupabase


class FixedProvider(ExternalCatalogProvider):
    """Provider that always describes the same product."""

    def __init__(self, product):
        self.product = product

    async def fetch_product(self, url):
        return self.product

    async def fetch_quote(self, product):
        return None


def kettle(external_id="jumia_1", category="Kitchen"):
    return ExternalProduct(external_id=external_id, name="Kettle", price=1000, category=category, stock_quantity=12)


class TestJobStatus:
    """Tests for job outcome rollup."""

    def test_statuses(self):
        assert job_status(3, 0) == "success"
        assert job_status(0, 2) == "failed"
        assert job_status(2, 1) == "partial"
        assert job_status(0, 0) == "success"


class TestImportByUrl:
    """Tests for single URL imports."""

    @pytest.mark.asyncio
    async def test_creates_priced_product_with_supplier(self):
        db = FakeSupabase()
        service = ImportService(db, provider=FixedProvider(kettle()))

        result = await service.import_by_url("https://www.jumia.com.ng/kettle.html", PricingRules(percent=20))

        assert result["price"] == 1200
        [supplier] = db.rows("suppliers")
        assert supplier["name"] == "Jumia"
        assert supplier["type"] == "jumia"
        assert supplier["slug"] == "jumia"
        [category] = db.rows("categories")
        assert category["slug"] == "kitchen"
        [product] = db.rows("products")
        assert product["price"] == 1200
        assert product["is_external"] is True
        assert product["supplier_id"] == supplier["id"]
        assert product["category_id"] == category["id"]
        assert product["external_url"] == "https://www.jumia.com.ng/kettle.html"

    @pytest.mark.asyncio
    async def test_reuses_existing_supplier_and_category(self):
        db = FakeSupabase({
            "suppliers": [{"id": "s1", "name": "Jumia"}],
            "categories": [{"id": "c1", "name": "Kitchen"}],
        })
        service = ImportService(db, provider=FixedProvider(kettle()))

        await service.import_by_url("https://jumia.com/kettle", None)

        assert len(db.rows("suppliers")) == 1
        assert len(db.rows("categories")) == 1
        [product] = db.rows("products")
        assert product["price"] == 1000
        assert product["supplier_id"] == "s1"
        assert product["category_id"] == "c1"


class TestImportBatch:
    """Tests for batch imports."""

    @pytest.mark.asyncio
    async def test_existing_products_marked_failed(self):
        db = FakeSupabase({"products": [{"id": "p0", "external_id": "dup"}]})
        service = ImportService(db, provider=FixedProvider(None))

        result = await service.import_batch(
            "Acme Wholesale",
            [kettle("new_1"), kettle("dup"), kettle("new_2")],
            PricingRules(strategy="fixed", fixed=250),
            "admin-1",
        )

        assert result["success"] == 2
        assert result["failed"] == 1

        [job] = db.rows("import_jobs")
        assert job["id"] == result["job_id"]
        assert job["status"] == "partial"
        assert job["success_count"] == 2
        assert job["failed_count"] == 1
        assert job["pricing_rules"]["strategy"] == "fixed"

        items = {item["external_id"]: item for item in db.rows("import_job_items")}
        assert items["dup"]["status"] == "failed"
        assert items["dup"]["error"] == "Already exists"
        assert items["new_1"]["status"] == "success"
        assert items["new_1"]["product_id"] is not None

        imported = [row for row in db.rows("products") if row["id"] != "p0"]
        assert {row["price"] for row in imported} == {1250}

    @pytest.mark.asyncio
    async def test_store_failure_fails_item_not_batch(self):
        db = FakeSupabase()
        db.fail("products", "insert", "duplicate key value violates unique constraint")
        service = ImportService(db, provider=FixedProvider(None))

        result = await service.import_batch("Acme", [kettle("a"), kettle("b")], None, "admin-1")

        assert result["success"] == 0
        assert result["failed"] == 2
        assert db.rows("import_jobs")[0]["status"] == "failed"
        errors = {item["error"] for item in db.rows("import_job_items")}
        assert errors == {"duplicate key value violates unique constraint"}

    @pytest.mark.asyncio
    async def test_item_tracking_failure_still_finishes_job(self):
        """A failed job-item insert fails that item and the job still closes."""
        db = FakeSupabase()
        db.fail("import_job_items", "insert", "item insert denied")
        service = ImportService(db, provider=FixedProvider(None))

        result = await service.import_batch("Acme", [kettle("a"), kettle("b")], None, "admin-1")

        assert (result["success"], result["failed"]) == (0, 2)
        [job] = db.rows("import_jobs")
        assert job["status"] == "failed"
        assert job["failed_count"] == 2
        assert db.rows("products") == []

    @pytest.mark.asyncio
    async def test_outcome_write_failure_keeps_import(self):
        """The product is imported even when its outcome cannot be recorded."""
        db = FakeSupabase()
        db.fail("import_job_items", "update", "item update denied")
        service = ImportService(db, provider=FixedProvider(None))

        result = await service.import_batch("Acme", [kettle("a")], None, "admin-1")

        assert (result["success"], result["failed"]) == (1, 0)
        assert db.rows("import_jobs")[0]["status"] == "success"
        assert len(db.rows("products")) == 1

    @pytest.mark.asyncio
    async def test_supplier_failure_closes_job(self):
        db = FakeSupabase()
        db.fail("suppliers", "select", "permission denied for table suppliers")
        service = ImportService(db, provider=FixedProvider(None))

        with pytest.raises(StoreError):
            await service.import_batch("Acme", [kettle("a"), kettle("b")], None, "admin-1")

        [job] = db.rows("import_jobs")
        assert job["status"] == "failed"
        assert job["failed_count"] == 2
