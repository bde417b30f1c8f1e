"""
Integration tests for core/observability.py and the request middleware.

Covers correlation IDs, both log formatters, Timer and the metrics behind
/api/metrics.
"""
import logging
import json
import time as time_module

import pytest

from core.observability import (
    HumanReadableFormatter,
    MetricsCollector,
    StructuredFormatter,
    Timer,
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    log_extras,
    metrics,
    set_correlation_id,
)


def make_record(msg="Category created", name="core.repositories.catalog_repo", **extra):
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="catalog_repo.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


@pytest.fixture(autouse=True)
def clean_metrics():
    metrics.reset()
    yield
    metrics.reset()


class TestCorrelationId:
    """Correlation ID helpers."""

    def test_generated_ids_are_short_and_unique(self):
        first, second = generate_correlation_id(), generate_correlation_id()
        assert len(first) == 8
        assert first != second

    def test_set_and_get(self):
        set_correlation_id("order-sync-1")
        assert get_correlation_id() == "order-sync-1"


class TestFormatters:
    """JSON and console formatters."""

    def test_json_core_fields(self):
        parsed = json.loads(StructuredFormatter().format(make_record()))
        assert parsed["message"] == "Category created"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "core.repositories.catalog_repo"
        assert parsed["timestamp"].endswith("Z")

    def test_json_correlation_id(self):
        set_correlation_id("req-456")
        parsed = json.loads(StructuredFormatter().format(make_record()))
        assert parsed["correlation_id"] == "req-456"

    def test_json_extras(self):
        parsed = json.loads(StructuredFormatter().format(make_record(slug="mens-shoes", table="categories")))
        assert parsed["slug"] == "mens-shoes"
        assert parsed["table"] == "categories"

    def test_json_serializes_unknown_types(self):
        """Values orjson cannot encode natively fall back to str()."""
        parsed = json.loads(StructuredFormatter().format(make_record(price=Ellipsis)))
        assert parsed["price"] == "Ellipsis"

    def test_private_attributes_skipped(self):
        assert log_extras(make_record(_internal="x", product_id="P1")) == {"product_id": "P1"}

    def test_human_readable(self):
        set_correlation_id("req-1")
        output = HumanReadableFormatter().format(make_record(slug="mens-shoes"))
        assert "[req-1]" in output
        assert "Category created" in output
        assert "'slug': 'mens-shoes'" in output

    def test_get_logger(self):
        assert get_logger("core.queries").name == "core.queries"


class TestTimer:
    """Timer context manager."""

    def test_measures_elapsed_time(self):
        with Timer("list_categories") as timer:
            time_module.sleep(0.05)
        assert 45 <= timer.elapsed_ms < 500

    def test_records_metric(self):
        with Timer("list_categories", metric="store.list_categories"):
            pass
        assert metrics.get_stats()["timing"]["store.list_categories"]["count"] == 1

    def test_failed_block_not_recorded(self):
        with pytest.raises(RuntimeError):
            with Timer("list_categories", metric="store.list_categories"):
                raise RuntimeError("store down")
        assert "store.list_categories" not in metrics.get_stats()["timing"]


class TestMetricsCollector:
    """MetricsCollector snapshots."""

    def test_counts(self):
        collector = MetricsCollector()
        collector.record_request("GET /api/products")
        collector.record_request("GET /api/products")
        collector.record_error("store")

        stats = collector.get_stats()
        assert stats["requests"] == {"GET /api/products": 2}
        assert stats["errors"] == {"store": 1}

    def test_timing_summary(self):
        collector = MetricsCollector()
        for duration in (100.0, 200.0, 150.0):
            collector.record_timing("store.list_products", duration)

        timing = collector.get_stats()["timing"]["store.list_products"]
        assert timing["count"] == 3
        assert timing["avg_ms"] == 150.0
        assert (timing["min_ms"], timing["max_ms"]) == (100.0, 200.0)
        assert timing["p50_ms"] == 150.0
        assert timing["p95_ms"] == 200.0

    def test_keeps_latest_samples(self):
        collector = MetricsCollector(max_samples=3)
        for duration in (1.0, 2.0, 3.0, 4.0, 5.0):
            collector.record_timing("sync.external_products", duration)

        timing = collector.get_stats()["timing"]["sync.external_products"]
        assert timing["count"] == 3
        assert timing["min_ms"] == 3.0

    def test_reset(self):
        collector = MetricsCollector()
        collector.record_request("GET /api/deals")
        collector.record_timing("store.deals_ranked", 10.0)
        collector.reset()
        assert collector.get_stats() == {"requests": {}, "errors": {}, "timing": {}}


class TestRequestMiddleware:
    """Correlation and per-route metrics recorded by the HTTP middleware."""

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["correlation_id"] == "trace-123"

    def test_request_id_generated(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Response-Time"].endswith("ms")

    def test_store_timing_recorded(self, as_admin):
        as_admin.get("/api/admin/categories")
        assert "store.list_categories" in metrics.get_stats()["timing"]

    def test_requests_keyed_by_route_template(self, as_admin):
        as_admin.get("/api/admin/orders/o1")
        as_admin.get("/api/admin/orders/o2")

        stats = metrics.get_stats()
        assert stats["requests"]["GET /api/admin/orders/{order_id}"] == 2
        assert stats["errors"]["HTTP_404"] == 2
