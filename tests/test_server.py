"""
Tests for the REST API
"""
import pytest
from fastapi.testclient import TestClient

import server
from welfare_assistant.tools import BaseCatalogProvider, CatalogFetchError


@pytest.fixture
def client(assistant):
    server.app.dependency_overrides[server.get_assistant] = lambda: assistant
    with TestClient(server.app) as test_client:
        yield test_client
    server.app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_session_lifecycle(client):
    created = client.post("/session/create").json()
    session_id = created["session_id"]
    assert created["phase"] == "collecting"
    assert "age" in created["text"]

    state = client.get(f"/session/{session_id}/state")
    assert state.status_code == 200
    assert state.json()["profile"] == {}
    assert state.json()["missing_fields"][0] == "age"

    assert client.delete(f"/session/{session_id}").json()["status"] == "session ended"
    assert client.get(f"/session/{session_id}/state").status_code == 404


def test_chat_collects_profile(client, extractor_llm):
    session_id = client.post("/session/create").json()["session_id"]
    extractor_llm.queue({"age": 34, "gender": "female"})

    body = client.post("/chat/text", json={"session_id": session_id, "text": "I'm a 34 year old woman"}).json()

    assert body["session_id"] == session_id
    assert body["type"] == "question"
    assert body["profile"] == {"age": 34, "gender": "female"}
    assert "state" in body["text"]


def test_chat_without_session_starts_one(client):
    body = client.post("/chat/text", json={"text": "hello"}).json()
    assert body["session_id"].startswith("session_")
    assert body["phase"] == "collecting"


def test_list_schemes(client):
    body = client.get("/schemes", params={"category": "pension"}).json()
    ids = [s["id"] for s in body["schemes"]]
    assert "widow_pension" in ids
    assert all("rules" not in s for s in body["schemes"])


def test_list_schemes_by_state(client):
    ids = [s["id"] for s in client.get("/schemes", params={"state": "Kerala", "limit": 50}).json()["schemes"]]
    assert "ladki_bahin" not in ids
    assert "pm_kisan" in ids


def test_scheme_details(client):
    body = client.get("/schemes/pm_kisan").json()
    assert body["rules"][0]["requires_farmer"] is True
    assert client.get("/schemes/nope").status_code == 404


def test_categories(client):
    categories = client.get("/categories").json()["categories"]
    assert {"id": "health", "label": "Health"} in categories


def test_evaluate_endpoint(client):
    body = client.post("/eligibility/evaluate", json={
        "age": 30,
        "gender": "Female",
        "state": "Maharashtra",
        "income": 90000,
        "maritalStatus": "widowed",
    }).json()

    ids = [s["id"] for s in body["eligible_schemes"]]
    assert "widow_pension" in ids
    assert "ladki_bahin" in ids
    assert "mjpjay" in ids
    assert body["catalog_failed"] is False


def test_evaluate_rejects_bad_profile(client):
    response = client.post("/eligibility/evaluate", json={"age": -4})
    assert response.status_code == 422


class StalledCatalog(BaseCatalogProvider):
    async def fetch_schemes_with_rules(self):
        raise CatalogFetchError("schemes: timed out after 20.0s")

    async def fetch_schemes(self):
        raise CatalogFetchError("schemes: timed out after 20.0s")

    async def fetch_scheme_details(self, scheme_id):
        raise CatalogFetchError("schemes: timed out after 20.0s")

    async def fetch_categories(self):
        raise CatalogFetchError("scheme_categories: timed out after 20.0s")


def test_catalog_outage_is_503(client, assistant):
    assistant.catalog_provider = StalledCatalog()

    assert client.get("/schemes").status_code == 503
    assert client.get("/schemes/pm_kisan").status_code == 503
    assert client.get("/categories").status_code == 503

    body = client.post("/eligibility/evaluate", json={"age": 30}).json()
    assert body["catalog_failed"] is True
    assert body["eligible_schemes"] == []
