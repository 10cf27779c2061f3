"""FastAPI application setup for the MTA:SA docs cache."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mtasa_docs.api.dependencies import (
    get_app_settings,
    get_catalog,
    get_catalog_loader,
    get_coordinator,
    get_database,
    get_embedding_model,
    get_matcher,
)
from mtasa_docs.api.routes_admin import router as admin_router
from mtasa_docs.api.routes_docs import router as docs_router
from mtasa_docs.api.routes_guides import router as guides_router
from mtasa_docs.api.routes_query import router as query_router
from mtasa_docs.core.errors import FetchFailed, NotFoundInCatalog
from mtasa_docs.core.logging import configure_logging, get_logger
from mtasa_docs.core.metrics import REQUEST_COUNT

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="MTA:SA Docs Cache",
    version="0.1.0",
    docs_url="/openapi-docs",
    redoc_url="/redoc",
)

app.include_router(query_router, prefix="", tags=["query"])
app.include_router(docs_router, prefix="", tags=["docs"])
app.include_router(guides_router, prefix="", tags=["guides"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.middleware("http")
async def count_requests(request: Request, call_next):
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.exception_handler(NotFoundInCatalog)
async def not_found_handler(request: Request, exc: NotFoundInCatalog) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": f"{exc}. Use /search to find the correct name."},
    )


@app.exception_handler(FetchFailed)
async def fetch_failed_handler(request: Request, exc: FetchFailed) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"detail": f"{exc}. The wiki page may not exist or be unavailable."},
    )


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons and start the catalog load without blocking."""
    settings = get_app_settings()
    get_database()
    get_embedding_model()
    catalog = get_catalog()
    get_matcher()
    get_coordinator()
    logger.info("Docs cache ready with %s restored functions", len(catalog))
    if settings.catalog_autoload:
        get_catalog_loader().start_background()


@app.get("/health", tags=["admin"])
def health() -> dict[str, object]:
    """Simple liveness check."""
    return {"ok": True, "catalog_size": len(get_catalog())}
