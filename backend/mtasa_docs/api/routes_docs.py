"""Documentation API routes."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from mtasa_docs.api.dependencies import get_coordinator
from mtasa_docs.cache.coordinator import CacheCoordinator
from mtasa_docs.core.errors import NotFoundInCatalog
from mtasa_docs.ingest.formatter import format_document, format_examples
from mtasa_docs.models.dto import (
    BatchDocEntry,
    BatchDocsRequest,
    BatchDocsResponse,
    DocumentResponse,
    ExamplesResponse,
)
from mtasa_docs.models.entities import Item

router = APIRouter()


@router.get("/docs/{name}", response_model=None, summary="Get documentation for one function")
def get_document(
    name: str,
    use_cache: bool = Query(True, description="Serve a fresh cached copy when available"),
    format: Literal["json", "markdown"] = Query("json"),
    include_examples: bool = Query(True),
    coordinator: CacheCoordinator = Depends(get_coordinator),
) -> DocumentResponse | PlainTextResponse:
    doc = coordinator.resolve(name, use_cache=use_cache)
    item = _catalog_item(coordinator, name)
    if format == "markdown":
        return PlainTextResponse(format_document(doc, item, include_examples=include_examples), media_type="text/markdown")
    response = DocumentResponse.from_document(doc, item)
    if not include_examples:
        response.examples = []
    return response


@router.get("/docs/{name}/examples", response_model=ExamplesResponse, summary="Get only code examples")
def get_examples(
    name: str,
    format: Literal["json", "markdown"] = Query("json"),
    coordinator: CacheCoordinator = Depends(get_coordinator),
):
    doc = coordinator.resolve(name, use_cache=True)
    if not doc.example_blocks:
        raise HTTPException(
            status_code=404,
            detail=f"No examples found for {name}. Check the full documentation at {doc.source_url}",
        )
    if format == "markdown":
        return PlainTextResponse(format_examples(doc), media_type="text/markdown")
    return ExamplesResponse(name=doc.id, url=doc.source_url, examples=doc.example_blocks)


@router.post("/docs/batch", response_model=BatchDocsResponse, summary="Get documentation for several functions")
def get_documents(
    request: BatchDocsRequest,
    coordinator: CacheCoordinator = Depends(get_coordinator),
) -> BatchDocsResponse:
    entries: list[BatchDocEntry] = []
    for result in coordinator.resolve_many(request.names, use_cache=request.use_cache):
        if result.document is None:
            entries.append(BatchDocEntry(name=result.id, error=result.error))
            continue
        document = DocumentResponse.from_document(result.document, _catalog_item(coordinator, result.id))
        if not request.include_examples:
            document.examples = []
        entries.append(BatchDocEntry(name=result.id, document=document))
    return BatchDocsResponse(results=entries)


def _catalog_item(coordinator: CacheCoordinator, name: str) -> Item:
    item = coordinator.catalog.get(name)
    if item is None:
        raise NotFoundInCatalog(name)
    return item
