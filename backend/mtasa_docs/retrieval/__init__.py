"""Retrieval orchestration components."""

from .keywords import KeywordExpander
from .search import Matcher
from .vector_index import VectorIndex

__all__ = [
    "KeywordExpander",
    "Matcher",
    "VectorIndex",
]
