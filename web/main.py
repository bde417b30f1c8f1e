"""
FastAPI web application for the storefront API.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from core.config import ConfigurationError, config, validate_config
from core.exceptions import StoreError, StorefrontError, ValidationError
from core.observability import get_correlation_id, get_logger, setup_logging
from core.store import close_client
from web.config import VERSION, WEB_HOST, WEB_PORT
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from web.routes import api, auth
from web.routes.api._deps import limiter

setup_logging(level=config.logging.level, json_format=config.logging.json_format)
logger = get_logger(__name__)

app = FastAPI(
    title="Storefront API",
    description="Storefront and back-office API over Supabase",
    version=VERSION,
    default_response_class=ORJSONResponse,
)

app.state.limiter = limiter


# ─── Exception handlers ───────────────────────────────────────────────────────

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail
        }
    )


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if isinstance(exc, StoreError):
        logger.error(
            f"Store failure on {request.method} {request.url.path}: {exc}",
            extra={"table": exc.table, "code": exc.code},
        )
    return ORJSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected input on {request.url.path}: {exc}")
    return ORJSONResponse(status_code=400, content={"error": exc.message, "field": exc.field})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or "body"
    message = "Invalid JSON" if first.get("type") == "json_invalid" else first.get("msg", "Invalid request")
    return ORJSONResponse(status_code=400, content={"error": message, "field": field})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ORJSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return ORJSONResponse(
        status_code=500,
        content={"error": "Internal server error", "correlation_id": get_correlation_id()},
    )


# ─── Middleware ───────────────────────────────────────────────────────────────

# Add request logging middleware (adds correlation IDs and timing)
app.add_middleware(RequestLoggingMiddleware)

# Must be AFTER logging so correlation_id is set when timeout fires
app.add_middleware(RequestTimeoutMiddleware)

# Add Gzip compression (min 500 bytes to compress)
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(auth.router)
app.include_router(api.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Storefront API starting...")

    # Validate configuration early - fail fast with clear errors
    try:
        validate_config()
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    logger.info(f"Storefront API ready (v{VERSION})")


@app.on_event("shutdown")
async def shutdown_event():
    await close_client()
    logger.info("Storefront API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web.main:app", host=WEB_HOST, port=WEB_PORT)
