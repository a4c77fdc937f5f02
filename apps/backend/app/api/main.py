"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context, body limit)
  - Mount signature/enrollment/request routers under /v1 prefix
  - Expose health check and metrics endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - interfaces.api.http.router: business endpoints

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated)
  - APP_ENV=test runs on in-memory repositories; no pool is opened

Notes:
  - Middleware order matters: RequestContext → CORS → routes
  - /v1 prefix allows API versioning (/api/v1 alias via versioning.py)
  - /healthz is liveness only; /readyz checks the DB pool
  - /metrics exposes Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..infrastructure.db.pool import (
    close_pool,
    get_pool,
    init_pool,
    is_pool_initialized,
)
from ..interfaces.api.http.router import router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers
from .versioning import include_versioned_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Initializes the pool outside test envs."""
    settings = get_settings()

    if not settings.is_test():
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        logger.info(
            "Firmas API starting up",
            extra={
                "app_env": settings.app_env,
                "db_pool_min": settings.db_pool_min_size,
                "db_pool_max": settings.db_pool_max_size,
                "offline_batch_max_items": settings.offline_batch_max_items,
            },
        )
        yield
    finally:
        if is_pool_initialized():
            close_pool()
        logger.info("Firmas API shutting down")


app = FastAPI(
    title="Firmas PIN API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "User authentication (JWT)"},
        {"name": "enrollment", "description": "PIN setup and enrollment"},
        {"name": "signatures", "description": "Signature ledger and disputes"},
        {
            "name": "signature-requests",
            "description": "Multi-signer requests and offline batches",
        },
    ],
)


# Middleware order (bottom = first to execute):
# 1. RequestContextMiddleware - sets request_id
# 2. CORSMiddleware - handles preflight
# 3. BodyLimitMiddleware - rejects oversized bodies early
app.add_middleware(BodyLimitMiddleware)

_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.get_allowed_origins_list(),
    allow_credentials=_settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Request-Id",
    ],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(router, prefix="/v1")
app.include_router(auth_router)
include_versioned_routes(app)

register_exception_handlers(app)


def _db_status() -> str:
    if not is_pool_initialized():
        return "disabled"
    try:
        with get_pool().connection() as conn:
            conn.execute("SELECT 1")
        return "connected"
    except Exception as e:
        logger.warning("Ready check: DB unavailable", extra={"error": str(e)})
        return "disconnected"


@app.get("/healthz")
def healthz(request: Request):
    """Liveness: the process is serving requests."""
    return {
        "ok": True,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.get("/readyz")
def readyz(request: Request, response: Response):
    """
    Readiness check for core dependencies.

    Returns:
        ok: True if the DB answers (or no pool is configured, e.g. tests)
        db: "connected", "disconnected" or "disabled"
        request_id: Correlation ID for this request
    """
    db_status = _db_status()
    ok = db_status != "disconnected"
    if not ok:
        response.status_code = 503
    return {
        "ok": ok,
        "db": db_status,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics (text format)."""
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
