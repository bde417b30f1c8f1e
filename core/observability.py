"""
Logging, request correlation and in-process metrics.

Every log line carries the request's correlation ID (set by the HTTP
middleware) plus whatever was passed through `extra=`:

    logger = get_logger(__name__)
    logger.info("Category created", extra={"category_id": row["id"]})

Store calls, the dashboard and the external sync are timed with Timer, which
also feeds the /api/metrics snapshot when given a metric name.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import orjson

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# LogRecord attributes; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Chatty HTTP loggers: the Supabase client logs every request through httpx
_QUIET_LIBS = ("httpx", "httpcore", "hpack", "uvicorn.access")

SLOW_OPERATION_MS = 1000


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def generate_correlation_id() -> str:
    """Short random request ID (8 hex characters)."""
    return uuid.uuid4().hex[:8]


def log_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed via `extra=`, minus private (underscore) attributes."""
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log shippers (LOG_FORMAT=json)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(log_extras(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(entry, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


class HumanReadableFormatter(logging.Formatter):
    """
    Console format:

        2026-01-05 10:00:00 - INFO     - core.queries [a1b2c3d4] - message | {extras}
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        line = "{} - {:8} - {}{} - {}".format(
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
            record.name,
            f" [{correlation_id}]" if correlation_id else "",
            record.getMessage(),
        )
        extras = log_extras(record)
        if extras:
            line += f" | {extras}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", json_format: bool = False, include_libs: bool = False) -> None:
    """
    Install a single stream handler on the root logger.

    Args:
        level: Log level name
        json_format: JSON lines instead of the console format
        include_libs: Keep INFO logs from the HTTP client libraries
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not include_libs:
        for name in _QUIET_LIBS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING
# ═══════════════════════════════════════════════════════════════════════════════

class Timer:
    """
    Time a block; optionally log it and record it under a metric name.

        with Timer("list_categories", logger, metric="store.list_categories") as t:
            response = await builder.execute()

    Blocks slower than SLOW_OPERATION_MS log at WARNING, others at DEBUG.
    The metric is only recorded when the block completes without raising.
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None, metric: Optional[str] = None):
        self.name = name
        self.logger = logger
        self.metric = metric
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        if self.metric and exc_type is None:
            metrics.record_timing(self.metric, self.elapsed_ms)

        if self.logger:
            slow = self.elapsed_ms > SLOW_OPERATION_MS
            self.logger.log(
                logging.WARNING if slow else logging.DEBUG,
                f"{self.name} {'slow' if slow else 'completed'}",
                extra={"duration_ms": round(self.elapsed_ms, 2)},
            )


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════════

def _percentile(ordered: List[float], fraction: float) -> float:
    index = min(len(ordered) - 1, int(len(ordered) * fraction))
    return round(ordered[index], 2)


class MetricsCollector:
    """
    In-memory counters behind /api/metrics.

    Requests are counted per route ("GET /api/admin/orders/{order_id}"),
    errors per type ("store", "HTTP_404", exception class names), and
    timings keep the last `max_samples` per operation.
    """

    def __init__(self, max_samples: int = 100):
        self._max_samples = max_samples
        self._requests: Dict[str, int] = {}
        self._errors: Dict[str, int] = {}
        self._timings: Dict[str, List[float]] = {}

    def record_request(self, endpoint: str) -> None:
        self._requests[endpoint] = self._requests.get(endpoint, 0) + 1

    def record_error(self, error_type: str) -> None:
        self._errors[error_type] = self._errors.get(error_type, 0) + 1

    def record_timing(self, operation: str, duration_ms: float) -> None:
        samples = self._timings.setdefault(operation, [])
        samples.append(duration_ms)
        del samples[:-self._max_samples]

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot: request and error counts, timing summaries per operation."""
        timing = {}
        for operation, samples in self._timings.items():
            if not samples:
                continue
            ordered = sorted(samples)
            timing[operation] = {
                "count": len(ordered),
                "avg_ms": round(sum(ordered) / len(ordered), 2),
                "min_ms": round(ordered[0], 2),
                "max_ms": round(ordered[-1], 2),
                "p50_ms": _percentile(ordered, 0.5),
                "p95_ms": _percentile(ordered, 0.95),
            }
        return {"requests": dict(self._requests), "errors": dict(self._errors), "timing": timing}

    def reset(self) -> None:
        self._requests.clear()
        self._errors.clear()
        self._timings.clear()


metrics = MetricsCollector()
