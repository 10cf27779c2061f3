"""Search orchestration."""

from __future__ import annotations

from dataclasses import dataclass

from mtasa_docs.catalog.store import Catalog
from mtasa_docs.core.errors import VectorSearchUnavailable
from mtasa_docs.core.logging import get_logger
from mtasa_docs.core.metrics import MATCH_PATH
from mtasa_docs.ingest.embeddings import EmbeddingModel
from mtasa_docs.models.entities import Item, Side
from mtasa_docs.retrieval.keywords import KeywordExpander
from mtasa_docs.retrieval.vector_index import VectorIndex
from mtasa_docs.utils.text import camel_parts

logger = get_logger(__name__)

PREFIX_SCORE = 20
CONTAINS_SCORE = 10
CAMEL_PART_SCORE = 5
MIN_KEYWORD_LENGTH = 3


@dataclass(slots=True)
class ScoredItem:
    item: Item
    score: int


class Matcher:
    """Rank catalog items for a free-text task description.

    Vector similarity over cached documents answers first; when it cannot
    fill ``limit`` results, keyword scoring over catalog names replaces it
    entirely. The two result sets are never merged.
    """

    def __init__(
        self,
        catalog: Catalog,
        vector_index: VectorIndex,
        embedding_model: EmbeddingModel,
        expander: KeywordExpander,
    ) -> None:
        self.catalog = catalog
        self.vector_index = vector_index
        self.embedding_model = embedding_model
        self.expander = expander

    def find_related(self, query: str, limit: int = 10) -> list[Item]:
        if limit <= 0:
            raise ValueError("limit must be positive")
        try:
            vector_items = self._vector_candidates(query, limit)
        except VectorSearchUnavailable as exc:
            logger.warning("Vector search unavailable, using keyword matching: %s", exc)
            vector_items = []
        if len(vector_items) >= limit:
            MATCH_PATH.labels(path="vector").inc()
            return vector_items[:limit]
        MATCH_PATH.labels(path="keyword").inc()
        return [scored.item for scored in self.keyword_scores(query)[:limit]]

    def keyword_scores(self, query: str) -> list[ScoredItem]:
        """Score every catalog item against the expanded query terms."""
        keywords = [word for word in self.expander.expand(query) if len(word) >= MIN_KEYWORD_LENGTH]
        scored: list[ScoredItem] = []
        if not keywords:
            return scored
        for item in self.catalog.items():
            score = score_name(item.id, keywords)
            if score > 0:
                scored.append(ScoredItem(item=item, score=score))
        scored.sort(key=lambda entry: (-entry.score, entry.item.id))
        return scored

    def search(self, text: str, side: Side | None = None, limit: int = 30) -> list[Item]:
        """Literal name search with an optional client/server filter."""
        if limit <= 0:
            raise ValueError("limit must be positive")
        return self.catalog.search_names(text, side=side, limit=limit)

    def list_by_category(self, category: str, limit: int = 100) -> list[Item]:
        if limit <= 0:
            raise ValueError("limit must be positive")
        return self.catalog.by_category(category, limit=limit)

    # ------------------------------------------------------------------

    def _vector_candidates(self, query: str, limit: int) -> list[Item]:
        query_vector = self.embedding_model.embed(query)
        hits = self.vector_index.search(query_vector, top_k=limit * 2)
        items: list[Item] = []
        for hit in hits:
            item = self.catalog.get(hit.item_id)
            if item is None:
                logger.debug("Cached document %s has no catalog entry", hit.item_id)
                continue
            items.append(item)
        return items


def score_name(name: str, keywords: list[str]) -> int:
    lowered = name.lower()
    parts = [part.lower() for part in camel_parts(name)]
    score = 0
    for keyword in keywords:
        if lowered.startswith(keyword):
            score += PREFIX_SCORE
        if keyword in lowered:
            score += CONTAINS_SCORE
        if any(keyword in part for part in parts):
            score += CAMEL_PART_SCORE
    return score


__all__ = ["Matcher", "ScoredItem", "score_name"]
