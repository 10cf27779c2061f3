"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from mtasa_docs.cache.coordinator import CacheCoordinator
from mtasa_docs.cache.doc_cache import DocCache
from mtasa_docs.catalog.store import Catalog, CatalogLoader
from mtasa_docs.core.config import Settings, get_settings
from mtasa_docs.db.sqlite import SQLiteDatabase
from mtasa_docs.ingest.embeddings import EmbeddingModel
from mtasa_docs.ingest.loaders import WikiClient
from mtasa_docs.retrieval import KeywordExpander, Matcher, VectorIndex

_DB: SQLiteDatabase | None = None
_CATALOG: Catalog | None = None
_DOC_CACHE: DocCache | None = None
_WIKI_CLIENT: WikiClient | None = None
_CATALOG_LOADER: CatalogLoader | None = None
_MATCHER: Matcher | None = None
_COORDINATOR: CacheCoordinator | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_embedding_model() -> EmbeddingModel:
    settings = get_app_settings()
    return EmbeddingModel.get(settings.vector_dim)


def get_catalog() -> Catalog:
    global _CATALOG
    if _CATALOG is None:
        catalog = Catalog(get_database())
        catalog.restore()
        _CATALOG = catalog
    return _CATALOG


def get_doc_cache() -> DocCache:
    global _DOC_CACHE
    if _DOC_CACHE is None:
        _DOC_CACHE = DocCache(
            get_database(),
            embedding_model=get_embedding_model(),
            max_age_ms=get_app_settings().cache_max_age_ms,
        )
    return _DOC_CACHE


def get_wiki_client() -> WikiClient:
    global _WIKI_CLIENT
    if _WIKI_CLIENT is None:
        _WIKI_CLIENT = WikiClient.from_settings(get_app_settings())
    return _WIKI_CLIENT


def get_catalog_loader() -> CatalogLoader:
    global _CATALOG_LOADER
    if _CATALOG_LOADER is None:
        _CATALOG_LOADER = CatalogLoader(get_catalog(), get_wiki_client())
    return _CATALOG_LOADER


def get_keyword_expander() -> KeywordExpander:
    return KeywordExpander.from_path(get_app_settings().alias_table_path)


def get_matcher() -> Matcher:
    global _MATCHER
    if _MATCHER is None:
        embedding_model = get_embedding_model()
        _MATCHER = Matcher(
            catalog=get_catalog(),
            vector_index=VectorIndex(get_doc_cache(), dim=embedding_model.dim),
            embedding_model=embedding_model,
            expander=get_keyword_expander(),
        )
    return _MATCHER


def get_coordinator() -> CacheCoordinator:
    global _COORDINATOR
    if _COORDINATOR is None:
        _COORDINATOR = CacheCoordinator(
            cache=get_doc_cache(),
            catalog=get_catalog(),
            fetcher=get_wiki_client(),
            embedding_model=get_embedding_model(),
        )
    return _COORDINATOR


def reset_state() -> None:
    """Drop every singleton so the next request rebuilds them."""
    global _DB, _CATALOG, _DOC_CACHE, _WIKI_CLIENT, _CATALOG_LOADER, _MATCHER, _COORDINATOR
    if _DB is not None:
        _DB.close()
    if _WIKI_CLIENT is not None:
        _WIKI_CLIENT.close()
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    _DB = None
    _CATALOG = None
    _DOC_CACHE = None
    _WIKI_CLIENT = None
    _CATALOG_LOADER = None
    _MATCHER = None
    _COORDINATOR = None


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_model",
    "get_catalog",
    "get_doc_cache",
    "get_wiki_client",
    "get_catalog_loader",
    "get_keyword_expander",
    "get_matcher",
    "get_coordinator",
    "reset_state",
]
