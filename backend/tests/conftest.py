"""Test fixtures for the MTA:SA docs cache."""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Callable, Iterable

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from mtasa_docs.cache.coordinator import CacheCoordinator  # noqa: E402
from mtasa_docs.cache.doc_cache import DocCache  # noqa: E402
from mtasa_docs.catalog.store import Catalog  # noqa: E402
from mtasa_docs.core.errors import FetchFailed  # noqa: E402
from mtasa_docs.db.sqlite import SQLiteDatabase  # noqa: E402
from mtasa_docs.ingest.embeddings import EmbeddingModel  # noqa: E402
from mtasa_docs.models.entities import FetchedPage, Item, ParsedDocument  # noqa: E402
from mtasa_docs.retrieval import KeywordExpander, Matcher, VectorIndex  # noqa: E402

START_MS = 1_700_000_000_000
WEEK_MS = 7 * 24 * 60 * 60 * 1000

SAMPLE_ITEMS = [
    Item.from_type_code("spawnVehicle", 7),
    Item.from_type_code("createVehicle", 5),
    Item.from_type_code("getVehicleName", 5),
    Item.from_type_code("outputChatBox", 7),
    Item.from_type_code("guiCreateWindow", 6),
    Item.from_type_code("dbConnect", 7),
    Item.from_type_code("dbQuery", 7),
    Item.from_type_code("onPlayerJoin", 9),
    Item.from_type_code("getPlayerName", 5),
    Item.from_type_code("destroyElement", 5),
]


class FakeClock:
    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeWiki:
    """Stands in for WikiClient; pages map a name to a page, an error, or a callable."""

    def __init__(self, catalog_items: Iterable[Item] = ()) -> None:
        self.pages: dict[str, object] = {}
        self.catalog_items = list(catalog_items)
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch_and_parse(self, name: str) -> FetchedPage:
        with self._lock:
            self.calls.append(name)
        outcome = self.pages.get(name)
        if outcome is None:
            raise FetchFailed(name, "HTTP 404")
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(name)
        return outcome

    def load_catalog(self) -> list[Item]:
        return list(self.catalog_items)

    def close(self) -> None:
        pass


def make_page(
    name: str,
    description: str = "",
    related: Iterable[str] = (),
    raw_html: str = "",
    url: str | None = None,
    **fields: str,
) -> FetchedPage:
    page_url = url or f"https://wiki.multitheftauto.com/wiki/{name}"
    parsed = ParsedDocument(name=name, url=page_url, description=description, related=list(related), **fields)
    return FetchedPage(parsed=parsed, raw_html=raw_html, url=page_url)


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("MTADOCS_DB_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("MTADOCS_CATALOG_AUTOLOAD", "false")
    monkeypatch.delenv("MTADOCS_CONFIG", raising=False)

    from mtasa_docs.api import dependencies as deps

    EmbeddingModel._instances.clear()
    deps.reset_state()
    yield
    EmbeddingModel._instances.clear()
    deps.reset_state()


@pytest.fixture
def database(tmp_path: Path) -> SQLiteDatabase:
    db = SQLiteDatabase(tmp_path / "docs.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def embedding_model() -> EmbeddingModel:
    return EmbeddingModel(dim=384)


@pytest.fixture
def catalog(database: SQLiteDatabase) -> Catalog:
    store = Catalog(database)
    store.upsert_many(SAMPLE_ITEMS)
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def doc_cache(database: SQLiteDatabase, embedding_model: EmbeddingModel, clock: FakeClock) -> DocCache:
    return DocCache(database, embedding_model=embedding_model, max_age_ms=WEEK_MS, clock=clock)


@pytest.fixture
def fake_wiki() -> FakeWiki:
    return FakeWiki(catalog_items=SAMPLE_ITEMS)


@pytest.fixture
def page_factory() -> Callable[..., FetchedPage]:
    return make_page


@pytest.fixture
def coordinator(
    doc_cache: DocCache,
    catalog: Catalog,
    fake_wiki: FakeWiki,
    embedding_model: EmbeddingModel,
) -> CacheCoordinator:
    return CacheCoordinator(cache=doc_cache, catalog=catalog, fetcher=fake_wiki, embedding_model=embedding_model)


@pytest.fixture
def matcher(catalog: Catalog, doc_cache: DocCache, embedding_model: EmbeddingModel) -> Matcher:
    return Matcher(
        catalog=catalog,
        vector_index=VectorIndex(doc_cache, dim=embedding_model.dim),
        embedding_model=embedding_model,
        expander=KeywordExpander.from_path(),
    )
