"""Query API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from mtasa_docs.api.dependencies import get_app_settings, get_matcher
from mtasa_docs.core.config import Settings
from mtasa_docs.models.dto import CategoriesResponse, ItemResponse, RelatedRequest, SearchResponse, SideFilter
from mtasa_docs.models.entities import CATEGORIES
from mtasa_docs.retrieval.search import Matcher

router = APIRouter()


@router.get("/search", response_model=SearchResponse, summary="Search functions and events by name")
def search_functions(
    q: str = Query(..., min_length=1, description="Function name or partial name"),
    side: SideFilter | None = Query(None, description="Only this side, plus shared functions"),
    limit: int | None = Query(None, ge=1, le=500),
    matcher: Matcher = Depends(get_matcher),
    settings: Settings = Depends(get_app_settings),
) -> SearchResponse:
    items = matcher.search(q, side=side, limit=limit or settings.default_search_limit)
    return SearchResponse(query=q, count=len(items), results=[ItemResponse.from_item(item) for item in items])


@router.post("/related", response_model=SearchResponse, summary="Find functions for a programming task")
def find_related(
    request: RelatedRequest,
    matcher: Matcher = Depends(get_matcher),
    settings: Settings = Depends(get_app_settings),
) -> SearchResponse:
    items = matcher.find_related(request.query, limit=request.limit or settings.default_related_limit)
    return SearchResponse(
        query=request.query,
        count=len(items),
        results=[ItemResponse.from_item(item) for item in items],
    )


@router.get("/categories", response_model=CategoriesResponse, summary="List the known function categories")
def list_categories() -> CategoriesResponse:
    return CategoriesResponse(categories=list(CATEGORIES))


@router.get("/categories/{category:path}", response_model=SearchResponse, summary="List functions in a category")
def list_category(
    category: str,
    limit: int = Query(100, ge=1, le=5000),
    matcher: Matcher = Depends(get_matcher),
) -> SearchResponse:
    if category not in CATEGORIES:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown category '{category}'. Valid categories: {', '.join(CATEGORIES)}",
        )
    items = matcher.list_by_category(category, limit=limit)
    return SearchResponse(query=category, count=len(items), results=[ItemResponse.from_item(item) for item in items])
