"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mtasa_docs.api import dependencies as deps
from mtasa_docs.app import app
from mtasa_docs.core.errors import FetchFailed
from mtasa_docs.models.entities import Item


@pytest.fixture
def wiki(fake_wiki, page_factory):
    fake_wiki.pages["createVehicle"] = page_factory(
        "createVehicle",
        description="This function creates a vehicle at the specified location.",
        syntax="vehicle createVehicle ( int model, float x, float y, float z )",
        examples="function spawnCar(player)\n    createVehicle(411, 0, 0, 3)\nend",
        related=["getVehicleName"],
    )
    fake_wiki.pages["dbQuery"] = page_factory("dbQuery", description="Runs a database query.")
    fake_wiki.pages["outputChatBox"] = FetchFailed("outputChatBox", "HTTP 503")
    return fake_wiki


@pytest.fixture
def client(wiki) -> TestClient:
    deps._WIKI_CLIENT = wiki
    deps.get_catalog().upsert_many(wiki.catalog_items)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "catalog_size": 10}


def test_search_by_name_with_side(client: TestClient) -> None:
    resp = client.get("/search", params={"q": "vehicle", "side": "client"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["count"] == 2
    assert [item["name"] for item in payload["results"]] == ["createVehicle", "getVehicleName"]


def test_related_uses_keyword_fallback(client: TestClient) -> None:
    resp = client.post("/related", json={"query": "spawn vehicle", "limit": 3})
    assert resp.status_code == 200
    names = [item["name"] for item in resp.json()["results"]]
    assert names == ["createVehicle", "getVehicleName", "spawnVehicle"]


def test_related_validates_limit(client: TestClient) -> None:
    resp = client.post("/related", json={"query": "vehicle", "limit": 0})
    assert resp.status_code == 422


def test_category_listing(client: TestClient) -> None:
    resp = client.get("/categories/Server Events")
    assert resp.status_code == 200
    assert [item["name"] for item in resp.json()["results"]] == ["onPlayerJoin"]


def test_unknown_category_is_404(client: TestClient) -> None:
    resp = client.get("/categories/Server Event")
    assert resp.status_code == 404
    assert "Server Events" in resp.json()["detail"]

    known = client.get("/categories").json()["categories"]
    assert known[0] == "Lua Keywords"
    assert "Unknown" in known
    assert client.get("/categories/Client Events").json()["count"] == 0


def test_resource_structure_guide(client: TestClient) -> None:
    resp = client.get("/guides/resource-structure")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/markdown")
    assert resp.text.startswith("# MTA:SA Resource Structure Guide")
    assert '<script src="server.lua" type="server"/>' in resp.text
    assert "<export function=" in resp.text


def test_docs_json_then_cache_hit(client: TestClient, wiki) -> None:
    resp = client.get("/docs/createVehicle")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["name"] == "createVehicle"
    assert payload["side"] == "shared"
    assert payload["syntax"] == ["vehicle createVehicle ( int model, float x, float y, float z )"]
    assert payload["related"] == ["getVehicleName"]
    assert payload["fetched_at"] is not None

    assert client.get("/docs/createVehicle").status_code == 200
    assert wiki.calls == ["createVehicle"]


def test_docs_markdown(client: TestClient) -> None:
    resp = client.get("/docs/createVehicle", params={"format": "markdown", "include_examples": "false"})
    assert resp.status_code == 200
    assert resp.text.startswith("# createVehicle")
    assert "## Examples" not in resp.text


def test_docs_unknown_name_is_404(client: TestClient) -> None:
    resp = client.get("/docs/notAFunction")
    assert resp.status_code == 404
    assert "notAFunction" in resp.json()["detail"]


def test_docs_fetch_failure_is_502(client: TestClient) -> None:
    resp = client.get("/docs/outputChatBox")
    assert resp.status_code == 502
    assert "HTTP 503" in resp.json()["detail"]


def test_examples_endpoint(client: TestClient) -> None:
    resp = client.get("/docs/createVehicle/examples")
    assert resp.status_code == 200
    assert resp.json()["examples"][0].startswith("function spawnCar")

    missing = client.get("/docs/dbQuery/examples")
    assert missing.status_code == 404


def test_batch_docs(client: TestClient) -> None:
    resp = client.post("/docs/batch", json={"names": ["dbQuery", "outputChatBox"], "include_examples": False})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results[0]["document"]["description"] == "Runs a database query."
    assert results[1]["document"] is None
    assert "HTTP 503" in results[1]["error"]


def test_cache_stats_and_clear(client: TestClient) -> None:
    client.get("/docs/createVehicle")
    client.get("/docs/dbQuery")

    stats = client.get("/cache/stats").json()
    assert stats["count"] == 2
    assert stats["max_age_days"] == 7

    cleared = client.delete("/cache/dbQuery").json()
    assert cleared == {"target": "dbQuery", "deleted": 1}
    assert client.delete("/cache/all").json()["deleted"] == 1
    assert client.get("/cache/stats").json()["count"] == 0


def test_catalog_reload(client: TestClient, wiki) -> None:
    wiki.catalog_items.append(Item.from_type_code("setVehicleColor", 5))
    resp = client.post("/catalog/reload")
    assert resp.status_code == 200
    assert resp.json() == {"loaded": 11, "total": 11}
    assert client.get("/search", params={"q": "setVehicleColor"}).json()["count"] == 1


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "mtadocs_requests_total" in resp.text


def test_related_default_limit_from_settings(monkeypatch: pytest.MonkeyPatch, wiki) -> None:
    monkeypatch.setenv("MTADOCS_DEFAULT_RELATED_LIMIT", "2")
    deps.reset_state()
    deps._WIKI_CLIENT = wiki
    deps.get_catalog().upsert_many(wiki.catalog_items)
    with TestClient(app) as client:
        resp = client.post("/related", json={"query": "spawn vehicle"})
    assert [item["name"] for item in resp.json()["results"]] == ["createVehicle", "getVehicleName"]
