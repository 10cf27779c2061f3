"""Vector index abstraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from mtasa_docs.ingest.embeddings import l2_distance


@dataclass(slots=True)
class SearchResult:
    item_id: str
    distance: float


class EmbeddingSource(Protocol):
    def embeddings(self) -> list[tuple[str, list[float]]]: ...


class VectorIndex:
    """Brute-force L2 search over the embeddings held by a document store.

    Every search reads a fresh snapshot, so newly cached documents are
    visible immediately and no in-memory copy has to be kept in sync.
    """

    def __init__(self, source: EmbeddingSource, dim: int) -> None:
        self.source = source
        self.dim = dim

    def search(self, vector: Sequence[float], top_k: int = 8) -> list[SearchResult]:
        if len(vector) != self.dim:
            raise ValueError("Query vector dimension mismatch")
        query = list(vector)
        scored = [
            SearchResult(item_id=item_id, distance=l2_distance(stored, query))
            for item_id, stored in self.source.embeddings()
        ]
        scored.sort(key=lambda result: (result.distance, result.item_id))
        return scored[:top_k]


__all__ = ["VectorIndex", "SearchResult", "EmbeddingSource"]
