"""Administrative routes for the docs cache."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mtasa_docs.api.dependencies import get_catalog_loader, get_coordinator
from mtasa_docs.cache.coordinator import CacheCoordinator
from mtasa_docs.catalog.store import CatalogLoader
from mtasa_docs.core.config import DAY_MS
from mtasa_docs.core.metrics import metrics_response
from mtasa_docs.models.dto import CacheStatsResponse, CatalogReloadResponse, ClearCacheResponse

router = APIRouter()


@router.delete("/cache/{target}", response_model=ClearCacheResponse, summary="Clear one cached document or 'all'")
def clear_cache(target: str, coordinator: CacheCoordinator = Depends(get_coordinator)) -> ClearCacheResponse:
    deleted = coordinator.clear(target)
    return ClearCacheResponse(target=target, deleted=deleted)


@router.get("/cache/stats", response_model=CacheStatsResponse, summary="Document cache statistics")
def cache_stats(coordinator: CacheCoordinator = Depends(get_coordinator)) -> CacheStatsResponse:
    stats = coordinator.stats()
    return CacheStatsResponse(
        count=stats.count,
        approx_size_bytes=stats.approx_size_bytes,
        db_path=stats.db_path,
        max_age_days=stats.max_age_ms / DAY_MS,
    )


@router.post("/catalog/reload", response_model=CatalogReloadResponse, summary="Reload the function catalog")
def reload_catalog(loader: CatalogLoader = Depends(get_catalog_loader)) -> CatalogReloadResponse:
    loaded = loader.load()
    return CatalogReloadResponse(loaded=loaded, total=len(loader.catalog))


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
