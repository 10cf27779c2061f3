"""Error types raised by the catalog, cache and matcher."""

from __future__ import annotations


class DocsError(Exception):
    """Base class for docs cache errors."""


class NotFoundInCatalog(DocsError):
    """The requested identifier is not a known catalog item."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"'{item_id}' is not in the function catalog")
        self.item_id = item_id


class FetchFailed(DocsError):
    """The wiki could not be reached or returned no usable page."""

    def __init__(self, item_id: str, reason: str) -> None:
        super().__init__(f"Failed to fetch documentation for '{item_id}': {reason}")
        self.item_id = item_id
        self.reason = reason


class VectorSearchUnavailable(DocsError):
    """Stored embeddings could not be read."""


__all__ = ["DocsError", "NotFoundInCatalog", "FetchFailed", "VectorSearchUnavailable"]
