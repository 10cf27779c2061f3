"""Persisted document cache with a global max-age policy."""

from __future__ import annotations

import sqlite3
from typing import Callable

from mtasa_docs.core.errors import VectorSearchUnavailable
from mtasa_docs.core.logging import get_logger, log_extra
from mtasa_docs.core.metrics import CACHED_DOCUMENTS
from mtasa_docs.db.sqlite import SQLiteDatabase
from mtasa_docs.ingest.embeddings import EmbeddingModel
from mtasa_docs.models.entities import CacheEntry, CacheStats, Document
from mtasa_docs.utils.time import now_ms

logger = get_logger(__name__)

_DOCUMENT_COLUMNS = (
    "id, source_url, description, syntax, examples, parameters, returns, "
    "related, full_text, fetched_at, embedding, deprecated"
)

# A write carrying an older fetched_at than the stored row is dropped.
_UPSERT_DOCUMENT_SQL = f"""
INSERT INTO documents ({_DOCUMENT_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
  source_url = excluded.source_url,
  description = excluded.description,
  syntax = excluded.syntax,
  examples = excluded.examples,
  parameters = excluded.parameters,
  returns = excluded.returns,
  related = excluded.related,
  full_text = excluded.full_text,
  fetched_at = excluded.fetched_at,
  embedding = excluded.embedding,
  deprecated = excluded.deprecated
WHERE excluded.fetched_at >= documents.fetched_at
"""


class DocCache:
    """Key to document store over the ``documents`` table."""

    def __init__(
        self,
        database: SQLiteDatabase,
        embedding_model: EmbeddingModel,
        max_age_ms: int,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.db = database
        self.embedding_model = embedding_model
        self.max_age_ms = max_age_ms
        self.clock = clock

    def get(self, item_id: str) -> CacheEntry | None:
        row = self.db.query_one(f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", [item_id])
        if row is None:
            return None
        document = self._row_to_document(row)
        return CacheEntry(document=document, fetched_at=document.fetched_at)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return entry.is_fresh(self.clock(), self.max_age_ms)

    def put(self, document: Document) -> None:
        """Upsert a document in one transaction; a failed write leaves the old row."""
        blob = self.embedding_model.as_bytes(document.embedding) if document.embedding is not None else None
        with self.db.transaction() as cursor:
            cursor.execute(
                _UPSERT_DOCUMENT_SQL,
                [
                    document.id,
                    document.source_url,
                    document.description,
                    document.syntax,
                    document.examples,
                    document.parameters,
                    document.returns,
                    document.related,
                    document.full_text,
                    document.fetched_at,
                    blob,
                    document.deprecated,
                ],
            )
        self._update_count_metric()

    def delete(self, item_id: str) -> int:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM documents WHERE id = ?", [item_id])
            deleted = cursor.rowcount
        self._update_count_metric()
        return deleted

    def clear(self) -> int:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM documents")
            deleted = cursor.rowcount
        self._update_count_metric()
        return deleted

    def count(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS count FROM documents")
        return int(row["count"]) if row else 0

    def stats(self) -> CacheStats:
        return CacheStats(
            count=self.count(),
            approx_size_bytes=self.db.size_bytes(),
            db_path=str(self.db.db_path),
            max_age_ms=self.max_age_ms,
        )

    def embeddings(self) -> list[tuple[str, list[float]]]:
        """Snapshot of every stored embedding as ``(id, vector)`` pairs."""
        try:
            rows = self.db.query("SELECT id, embedding FROM documents WHERE embedding IS NOT NULL")
            return [(row["id"], self.embedding_model.from_bytes(row["embedding"])) for row in rows]
        except (sqlite3.Error, ValueError) as exc:
            raise VectorSearchUnavailable(f"Stored embeddings unreadable: {exc}") from exc

    # ------------------------------------------------------------------

    def _row_to_document(self, row: sqlite3.Row) -> Document:
        return Document(
            id=row["id"],
            source_url=row["source_url"],
            description=row["description"],
            syntax=row["syntax"],
            parameters=row["parameters"],
            returns=row["returns"],
            examples=row["examples"],
            related=row["related"],
            full_text=row["full_text"],
            embedding=self._read_embedding(row["id"], row["embedding"]),
            deprecated=row["deprecated"],
            fetched_at=int(row["fetched_at"]),
        )

    def _read_embedding(self, item_id: str, blob: bytes | None) -> list[float] | None:
        """Decode a stored vector; a blob of the wrong size reads as missing."""
        if blob is None:
            return None
        try:
            return self.embedding_model.from_bytes(blob)
        except ValueError as exc:
            logger.warning(
                "Ignoring unreadable embedding for %s: %s",
                item_id,
                exc,
                extra=log_extra(item=item_id, expected_dim=self.embedding_model.dim),
            )
            return None

    def _update_count_metric(self) -> None:
        try:
            CACHED_DOCUMENTS.set(self.count())
        except sqlite3.Error:  # pragma: no cover
            logger.debug("Could not refresh cached document gauge", exc_info=True)


__all__ = ["DocCache"]
