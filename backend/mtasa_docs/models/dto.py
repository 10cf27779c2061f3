"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from mtasa_docs.models.entities import Document, Item
from mtasa_docs.utils.time import ms_to_datetime

SideFilter = Literal["client", "server", "shared"]


class ItemResponse(BaseModel):
    name: str
    type: int
    category: str
    side: SideFilter

    @classmethod
    def from_item(cls, item: Item) -> "ItemResponse":
        return cls(name=item.id, type=item.type_code, category=item.category, side=item.side)


class SearchResponse(BaseModel):
    query: str
    count: int
    results: list[ItemResponse]


class CategoriesResponse(BaseModel):
    categories: list[str]


class RelatedRequest(BaseModel):
    query: str = Field(min_length=1, description="What you want to accomplish, e.g. 'spawn vehicle'")
    limit: int | None = Field(default=None, ge=1, le=100)


class DocumentResponse(BaseModel):
    name: str
    url: str
    category: str
    side: SideFilter
    description: str
    syntax: list[str]
    parameters: str
    returns: str
    examples: list[str]
    related: list[str]
    deprecated: str | None = None
    fetched_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: Document, item: Item) -> "DocumentResponse":
        return cls(
            name=doc.id,
            url=doc.source_url,
            category=item.category,
            side=item.side,
            description=doc.description,
            syntax=doc.syntax_blocks,
            parameters=doc.parameters,
            returns=doc.returns,
            examples=doc.example_blocks,
            related=doc.related_ids,
            deprecated=doc.deprecated,
            fetched_at=ms_to_datetime(doc.fetched_at),
        )


class ExamplesResponse(BaseModel):
    name: str
    url: str
    examples: list[str]


class BatchDocsRequest(BaseModel):
    names: list[str] = Field(min_length=1, max_length=50)
    include_examples: bool = True
    use_cache: bool = True


class BatchDocEntry(BaseModel):
    name: str
    document: DocumentResponse | None = None
    error: str | None = None


class BatchDocsResponse(BaseModel):
    results: list[BatchDocEntry]


class ClearCacheResponse(BaseModel):
    target: str
    deleted: int


class CacheStatsResponse(BaseModel):
    count: int
    approx_size_bytes: int
    db_path: str
    max_age_days: float


class CatalogReloadResponse(BaseModel):
    loaded: int
    total: int


__all__ = [
    "SideFilter",
    "ItemResponse",
    "SearchResponse",
    "CategoriesResponse",
    "RelatedRequest",
    "DocumentResponse",
    "ExamplesResponse",
    "BatchDocsRequest",
    "BatchDocEntry",
    "BatchDocsResponse",
    "ClearCacheResponse",
    "CacheStatsResponse",
    "CatalogReloadResponse",
]
