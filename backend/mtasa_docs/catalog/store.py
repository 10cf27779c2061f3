"""In-memory function catalog backed by the ``items`` table."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Iterable, Iterator

from mtasa_docs.core.logging import get_logger, log_extra
from mtasa_docs.db.sqlite import SQLiteDatabase
from mtasa_docs.models.entities import Item, Side

if TYPE_CHECKING:
    from mtasa_docs.ingest.loaders import WikiClient

logger = get_logger(__name__)

_UPSERT_ITEM_SQL = """
INSERT INTO items (id, type_code, category, side)
VALUES (?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
  type_code = excluded.type_code,
  category = excluded.category,
  side = excluded.side
"""


class Catalog:
    """Owned mapping of item id to :class:`Item`.

    Writers swap in a new dict under a lock; readers use whatever dict is
    current, so a partially loaded catalog is always safe to read.
    """

    def __init__(self, database: SQLiteDatabase | None = None, items: Iterable[Item] = ()) -> None:
        self.db = database
        self._lock = threading.Lock()
        self._items: dict[str, Item] = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items())

    def get(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def items(self) -> list[Item]:
        return list(self._items.values())

    def ids(self) -> frozenset[str]:
        return frozenset(self._items)

    def upsert_many(self, items: Iterable[Item]) -> int:
        """Add or update items by id; ids missing from ``items`` are kept."""
        batch = list(items)
        if not batch:
            return 0
        self._persist(batch)
        with self._lock:
            merged = dict(self._items)
            merged.update((item.id, item) for item in batch)
            self._items = merged
        return len(batch)

    def replace(self, items: Iterable[Item]) -> int:
        """Replace the in-memory catalog wholesale."""
        batch = list(items)
        self._persist(batch)
        with self._lock:
            self._items = {item.id: item for item in batch}
        return len(batch)

    def clear(self) -> None:
        with self._lock:
            self._items = {}

    def restore(self) -> int:
        """Load previously persisted items, merging them into memory."""
        if self.db is None:
            return 0
        rows = self.db.query("SELECT id, type_code, category, side FROM items")
        restored = [
            Item(id=row["id"], type_code=row["type_code"], category=row["category"], side=row["side"])
            for row in rows
        ]
        with self._lock:
            merged = {item.id: item for item in restored}
            merged.update(self._items)
            self._items = merged
        return len(restored)

    def by_category(self, category: str, limit: int | None = None) -> list[Item]:
        matches = sorted((item for item in self.items() if item.category == category), key=lambda item: item.id)
        return matches if limit is None else matches[:limit]

    def search_names(self, text: str, side: Side | None = None, limit: int | None = None) -> list[Item]:
        """Case-insensitive substring match on ids; a side filter also admits shared items."""
        needle = text.lower()
        matches = [
            item
            for item in self.items()
            if needle in item.id.lower() and (side is None or item.side in (side, "shared"))
        ]
        matches.sort(key=lambda item: item.id)
        return matches if limit is None else matches[:limit]

    def _persist(self, items: list[Item]) -> None:
        if self.db is None or not items:
            return
        with self.db.transaction() as cursor:
            cursor.executemany(
                _UPSERT_ITEM_SQL,
                [(item.id, item.type_code, item.category, item.side) for item in items],
            )


class CatalogLoader:
    """Populate a :class:`Catalog` from the wiki function lists."""

    def __init__(self, catalog: Catalog, client: "WikiClient") -> None:
        self.catalog = catalog
        self.client = client
        self._thread: threading.Thread | None = None

    def load(self) -> int:
        items = self.client.load_catalog()
        count = self.catalog.upsert_many(items)
        logger.info("Loaded %s functions into the catalog", count, extra=log_extra(catalog_size=len(self.catalog)))
        return count

    def start_background(self) -> threading.Thread:
        """Run :meth:`load` in a daemon thread; failures are logged."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(target=self._load_logged, name="catalog-loader", daemon=True)
        self._thread.start()
        return self._thread

    def _load_logged(self) -> None:
        try:
            self.load()
        except Exception as exc:
            logger.exception("Failed to load function catalog: %s", exc)


__all__ = ["Catalog", "CatalogLoader"]
