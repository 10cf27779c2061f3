from __future__ import annotations

import math
import threading

import pytest

from mtasa_docs.cache.coordinator import CLEAR_ALL, CacheCoordinator, KeyedLocks
from mtasa_docs.cache.doc_cache import DocCache
from mtasa_docs.core.errors import FetchFailed, NotFoundInCatalog
from mtasa_docs.ingest.embeddings import EmbeddingModel
from mtasa_docs.models.entities import Document


def test_unknown_id_is_rejected_without_fetch(coordinator: CacheCoordinator, fake_wiki) -> None:
    with pytest.raises(NotFoundInCatalog) as excinfo:
        coordinator.resolve("notAFunction")
    assert excinfo.value.item_id == "notAFunction"
    assert fake_wiki.calls == []


def test_miss_fetches_and_stores(coordinator: CacheCoordinator, fake_wiki, page_factory, clock) -> None:
    fake_wiki.pages["createVehicle"] = page_factory(
        "createVehicle",
        description="Creates a vehicle at the specified location.",
        syntax="vehicle createVehicle ( int model, float x, float y, float z )",
    )
    document = coordinator.resolve("createVehicle")

    assert document.description == "Creates a vehicle at the specified location."
    assert document.fetched_at == clock.now
    assert math.sqrt(sum(value * value for value in document.embedding)) == pytest.approx(1.0, rel=1e-5)
    stored = coordinator.cache.get("createVehicle")
    assert stored is not None
    assert stored.document == document


def test_fresh_hit_skips_fetch(coordinator: CacheCoordinator, fake_wiki, page_factory, clock) -> None:
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="Runs a query")
    coordinator.resolve("dbQuery")
    clock.advance(coordinator.cache.max_age_ms - 1)

    document = coordinator.resolve("dbQuery")
    assert document.description == "Runs a query"
    assert fake_wiki.calls == ["dbQuery"]


def test_stale_entry_is_refetched(coordinator: CacheCoordinator, fake_wiki, page_factory, clock) -> None:
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="old text")
    coordinator.resolve("dbQuery")
    clock.advance(coordinator.cache.max_age_ms)
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="new text")

    document = coordinator.resolve("dbQuery")
    assert document.description == "new text"
    assert document.fetched_at == clock.now
    assert coordinator.cache.get("dbQuery").document.description == "new text"
    assert fake_wiki.calls == ["dbQuery", "dbQuery"]


def test_bypass_always_fetches(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="Runs a query")
    coordinator.resolve("dbQuery")
    coordinator.resolve("dbQuery", use_cache=False)
    assert fake_wiki.calls == ["dbQuery", "dbQuery"]


def test_failed_refresh_serves_stale_copy(coordinator: CacheCoordinator, fake_wiki, page_factory, clock) -> None:
    fake_wiki.pages["outputChatBox"] = page_factory("outputChatBox", description="Outputs a chat message")
    original = coordinator.resolve("outputChatBox")
    clock.advance(coordinator.cache.max_age_ms + 1)
    fake_wiki.pages["outputChatBox"] = FetchFailed("outputChatBox", "HTTP 503")

    served = coordinator.resolve("outputChatBox")
    assert served == original
    assert coordinator.cache.get("outputChatBox").fetched_at == original.fetched_at


def test_failed_fetch_without_entry_raises(coordinator: CacheCoordinator, fake_wiki) -> None:
    with pytest.raises(FetchFailed) as excinfo:
        coordinator.resolve("spawnVehicle")
    assert excinfo.value.item_id == "spawnVehicle"
    assert coordinator.cache.get("spawnVehicle") is None


def test_failed_bypass_raises_and_keeps_entry(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    fake_wiki.pages["spawnVehicle"] = page_factory("spawnVehicle", description="Spawns a vehicle")
    original = coordinator.resolve("spawnVehicle")
    fake_wiki.pages["spawnVehicle"] = FetchFailed("spawnVehicle", "connection reset")

    with pytest.raises(FetchFailed):
        coordinator.resolve("spawnVehicle", use_cache=False)
    assert coordinator.resolve("spawnVehicle") == original


def test_parsed_related_takes_precedence(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    raw = '<h2>See also</h2><a title="getPlayerName">getPlayerName</a><h2>Other</h2>'
    fake_wiki.pages["spawnVehicle"] = page_factory(
        "spawnVehicle", description="Spawns", related=["destroyElement", "createVehicle"], raw_html=raw
    )
    document = coordinator.resolve("spawnVehicle")
    assert document.related_ids == ["destroyElement", "createVehicle"]


def test_related_scanned_from_raw_html(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    raw = (
        '<p>Intro <a title="dbQuery">dbQuery</a></p>'
        "<h2>See also</h2><ul>"
        '<li><a title="getPlayerName">getPlayerName</a></li>'
        '<li><a title="notAFunction">notAFunction</a></li>'
        '<li><a title="getPlayerName">again</a></li>'
        '<li><a title="destroyElement">destroyElement</a></li>'
        '</ul><h2>Changelog</h2><a title="dbConnect">dbConnect</a>'
    )
    fake_wiki.pages["spawnVehicle"] = page_factory("spawnVehicle", description="Spawns", raw_html=raw)
    document = coordinator.resolve("spawnVehicle")
    assert document.related == "getPlayerName, destroyElement"


def test_incomplete_page_is_still_cached(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    fake_wiki.pages["onPlayerJoin"] = page_factory("onPlayerJoin")
    document = coordinator.resolve("onPlayerJoin")
    assert document.description == ""
    assert document.embedding == [0.0] * coordinator.embedding_model.dim
    assert coordinator.cache.get("onPlayerJoin") is not None


def test_concurrent_refreshes_store_one_whole_document(
    coordinator: CacheCoordinator, fake_wiki, page_factory
) -> None:
    barrier = threading.Barrier(2, timeout=5)
    counter = iter(range(2))
    counter_lock = threading.Lock()

    def fetch(name: str):
        with counter_lock:
            index = next(counter)
        barrier.wait()
        return page_factory(name, description=f"revision {index}", returns=f"Returns revision {index}")

    fake_wiki.pages["getVehicleName"] = fetch
    results: list = []
    errors: list = []

    def worker() -> None:
        try:
            results.append(coordinator.resolve("getVehicleName", use_cache=False))
        except Exception as exc:  # surfaced by the assertions below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(results) == 2
    stored = coordinator.cache.get("getVehicleName").document
    assert stored in results
    revision = stored.description.split()[-1]
    assert stored.returns == f"Returns revision {revision}"
    assert stored.embedding == coordinator.embedding_model.embed(stored.full_text)


def test_resolve_many_reports_errors_per_id(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="Runs a query")
    results = coordinator.resolve_many(["dbQuery", "dbConnect", "nope"])

    assert [result.id for result in results] == ["dbQuery", "dbConnect", "nope"]
    assert results[0].document is not None
    assert "dbConnect" in results[1].error
    assert results[2].document is None
    assert "nope" in results[2].error


def test_clear_all_then_stats(coordinator: CacheCoordinator, fake_wiki, page_factory) -> None:
    for name in ("dbQuery", "dbConnect"):
        fake_wiki.pages[name] = page_factory(name, description=f"{name} docs")
        coordinator.resolve(name)

    assert coordinator.clear("dbQuery") == 1
    assert coordinator.stats().count == 1
    assert coordinator.clear(CLEAR_ALL) == 1
    assert coordinator.stats().count == 0


def test_keyed_locks_are_per_key() -> None:
    locks = KeyedLocks()
    assert locks.lock_for("a") is locks.lock_for("a")
    assert locks.lock_for("a") is not locks.lock_for("b")
    with locks.hold("a"):
        assert locks.lock_for("a").locked()
        assert not locks.lock_for("b").locked()


def _store_with_small_vector(coordinator: CacheCoordinator, database, clock, item_id: str) -> None:
    small = DocCache(
        database, embedding_model=EmbeddingModel(dim=8), max_age_ms=coordinator.cache.max_age_ms, clock=clock
    )
    small.put(
        Document(
            id=item_id,
            source_url=f"https://wiki.multitheftauto.com/wiki/{item_id}",
            description="written with another vector size",
            full_text=f"{item_id} written with another vector size",
            embedding=small.embedding_model.embed(f"{item_id} written with another vector size"),
            fetched_at=clock.now,
        )
    )


def test_bypass_rewrites_row_with_wrong_vector_size(
    coordinator: CacheCoordinator, fake_wiki, page_factory, database, clock
) -> None:
    _store_with_small_vector(coordinator, database, clock, "dbQuery")
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="Runs a query")

    document = coordinator.resolve("dbQuery", use_cache=False)

    assert document.description == "Runs a query"
    stored = coordinator.cache.get("dbQuery").document
    assert stored.description == "Runs a query"
    assert len(stored.embedding) == coordinator.embedding_model.dim
    assert [vector_id for vector_id, _ in coordinator.cache.embeddings()] == ["dbQuery"]


def test_fresh_row_with_wrong_vector_size_is_refetched(
    coordinator: CacheCoordinator, fake_wiki, page_factory, database, clock
) -> None:
    _store_with_small_vector(coordinator, database, clock, "dbConnect")
    fake_wiki.pages["dbConnect"] = page_factory("dbConnect", description="Opens a connection")

    document = coordinator.resolve("dbConnect")

    assert fake_wiki.calls == ["dbConnect"]
    assert document.description == "Opens a connection"
    assert coordinator.cache.get("dbConnect").document.embedding == document.embedding
