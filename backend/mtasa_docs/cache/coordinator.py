"""Fetch-through coordination between the document cache and the wiki."""

from __future__ import annotations

import re
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol

from mtasa_docs.cache.doc_cache import DocCache
from mtasa_docs.catalog.store import Catalog
from mtasa_docs.core.errors import DocsError, FetchFailed, NotFoundInCatalog
from mtasa_docs.core.logging import get_logger, log_extra
from mtasa_docs.core.metrics import CACHE_LOOKUPS, FETCH_FAILURES
from mtasa_docs.ingest.embeddings import EmbeddingModel
from mtasa_docs.models.entities import CacheStats, Document, FetchedPage

logger = get_logger(__name__)

CLEAR_ALL = "all"

_SEE_ALSO_RE = re.compile(r"See also.*?(?=<h[23]|\Z)", re.I | re.S)
_TITLE_ATTR_RE = re.compile(r'title="([^"]+)"')


class DocumentFetcher(Protocol):
    def fetch_and_parse(self, name: str) -> FetchedPage: ...


@dataclass(slots=True)
class ResolveResult:
    id: str
    document: Document | None = None
    error: str | None = None


class KeyedLocks:
    """One lock per key, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.lock_for(key)
        with lock:
            yield


class CacheCoordinator:
    """Serve documents from the cache, refreshing from the wiki when needed.

    Fresh entries are returned without a network call. Missing, stale, or
    bypassed entries are refetched; the embed and write for one id run under
    that id's lock. A failed refresh never touches the stored row, and with
    ``use_cache`` the stale row is served instead of the error.
    """

    def __init__(
        self,
        cache: DocCache,
        catalog: Catalog,
        fetcher: DocumentFetcher,
        embedding_model: EmbeddingModel,
    ) -> None:
        self.cache = cache
        self.catalog = catalog
        self.fetcher = fetcher
        self.embedding_model = embedding_model
        self._locks = KeyedLocks()

    def resolve(self, item_id: str, use_cache: bool = True) -> Document:
        if item_id not in self.catalog:
            raise NotFoundInCatalog(item_id)

        entry = self.cache.get(item_id)
        # A row whose vector could not be read is refetched so it is re-embedded.
        if use_cache and entry is not None and entry.document.embedding is not None and self.cache.is_fresh(entry):
            CACHE_LOOKUPS.labels(outcome="hit").inc()
            logger.debug("Using cached doc for %s", item_id)
            return entry.document

        if not use_cache:
            outcome = "bypass"
        elif entry is None:
            outcome = "miss"
        else:
            outcome = "stale"
        CACHE_LOOKUPS.labels(outcome=outcome).inc()
        logger.info("Fetching %s from wiki", item_id, extra=log_extra(item=item_id, cache_outcome=outcome))

        try:
            page = self.fetcher.fetch_and_parse(item_id)
        except FetchFailed as exc:
            FETCH_FAILURES.inc()
            if use_cache and entry is not None:
                logger.warning(
                    "Refresh of %s failed, serving stale copy: %s",
                    item_id,
                    exc.reason,
                    extra=log_extra(item=item_id, fetched_at=entry.fetched_at),
                )
                return entry.document
            logger.warning("Failed to fetch %s: %s", item_id, exc.reason)
            raise

        document = self._build_document(item_id, page)
        with self._locks.hold(item_id):
            document.embedding = self.embedding_model.embed(document.full_text)
            try:
                self.cache.put(document)
            except sqlite3.Error as exc:
                logger.error("Could not cache %s; previous entry kept: %s", item_id, exc)
        return document

    def resolve_many(self, item_ids: Iterable[str], use_cache: bool = True) -> list[ResolveResult]:
        results: list[ResolveResult] = []
        for item_id in item_ids:
            try:
                results.append(ResolveResult(id=item_id, document=self.resolve(item_id, use_cache)))
            except DocsError as exc:
                results.append(ResolveResult(id=item_id, error=str(exc)))
        return results

    def clear(self, target: str) -> int:
        """Drop one cached document, or every document when ``target`` is ``"all"``."""
        if target == CLEAR_ALL:
            deleted = self.cache.clear()
            logger.info("Cleared all cached documents", extra=log_extra(deleted=deleted))
        else:
            deleted = self.cache.delete(target)
            logger.info("Cleared cache for %s", target, extra=log_extra(deleted=deleted))
        return deleted

    def stats(self) -> CacheStats:
        return self.cache.stats()

    # ------------------------------------------------------------------

    def _build_document(self, item_id: str, page: FetchedPage) -> Document:
        parsed = page.parsed
        related = parsed.related or self._related_from_raw(page.raw_html)
        if parsed.is_incomplete:
            logger.info("Parsed page for %s has no content sections", item_id)
        return Document(
            id=item_id,
            source_url=page.url,
            description=parsed.description,
            syntax=parsed.syntax,
            parameters=parsed.parameters,
            returns=parsed.returns,
            examples=parsed.examples,
            related=", ".join(related),
            full_text=parsed.full_text,
            deprecated=parsed.deprecated,
            fetched_at=self.cache.clock(),
        )

    def _related_from_raw(self, raw_html: str) -> list[str]:
        match = _SEE_ALSO_RE.search(raw_html)
        if match is None:
            return []
        known = self.catalog.ids()
        related: list[str] = []
        for name in _TITLE_ATTR_RE.findall(match.group(0)):
            if name in known and name not in related:
                related.append(name)
        return related


__all__ = ["CacheCoordinator", "KeyedLocks", "ResolveResult", "DocumentFetcher", "CLEAR_ALL"]
