"""
Tests for the egg pool HTTP API — api/app.py and api/routes/.

Every client is built with an in-memory document store and a stubbed
reference client, so no request leaves the process.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient  # noqa: E402

from api.app import create_app  # noqa: E402
from utils.errors import ConflictError, TransportError  # noqa: E402
from eggpool.records import Document  # noqa: E402
from eggpool.store import InMemoryDocumentStore, VersionedDocumentStore  # noqa: E402
from utils.config import StoreConfig  # noqa: E402

from conftest import StubReference  # noqa: E402


@pytest.fixture
def store_config():
    config = StoreConfig()
    config.owner = ""
    config.repo = ""
    config.backoff_seconds = 0
    return config


def make_client(store, store_config, reference=None):
    app = create_app(store=store, reference_client=reference or StubReference(),
                     store_config=store_config, configure_logs=False)
    return TestClient(app)


@pytest.fixture
def client(memory_store, store_config):
    return make_client(memory_store, store_config)


class AlwaysConflict(VersionedDocumentStore):
    async def read(self):
        return Document(token="old")

    async def write(self, document, token, description):
        raise ConflictError("is at abc but expected old", status=409)


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["store_configured"] is True

    def test_request_id_header(self, client):
        assert len(client.get("/health").headers["X-Request-ID"]) == 8

    def test_unconfigured_store(self, store_config):
        c = make_client(None, store_config)
        assert c.get("/health").json()["store_configured"] is False
        assert c.get("/api/v1/eggs").status_code == 503
        resp = c.post("/api/v1/eggs", json={"submitter": "Ash", "pokemon": "pikachu"})
        assert resp.status_code == 503


class TestListEggs:
    def test_newest_first(self, client):
        resp = client.get("/api/v1/eggs")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert data["count_text"] == "2 eggs submitted"
        assert [e["submitter"] for e in data["eggs"]] == ["Brock", "Misty"]
        assert data["eggs"][0]["pokemonId"] == 95
        assert data["eggs"][0]["moves"] == ["Tackle", "Bind"]

    def test_store_failure_is_502(self, store_config):
        class Down(InMemoryDocumentStore):
            async def read(self):
                raise TransportError("GitHub API error: 500", status=500)

        resp = make_client(Down(), store_config).get("/api/v1/eggs")
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Failed to load eggs: GitHub API error: 500"


class TestSubmitEgg:
    def test_created(self, client, memory_store):
        resp = client.post("/api/v1/eggs", json={
            "submitter": "Ash", "pokemon": "Pikachu", "nickname": "Sparky",
            "moves": ["Thunderbolt"],
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "added"
        assert data["attempts"] == 1
        assert data["detail"] == (
            'Pikachu (nicknamed "Sparky") from Ash has been added to the egg pool.'
        )
        assert memory_store.records[-1].id == data["id"]
        assert memory_store.records[-1].pokemon_id == 25
        assert memory_store.revisions[-1][1] == "Add egg from Ash (Pikachu)"

    def test_unknown_pokemon_is_422(self, client, memory_store):
        resp = client.post("/api/v1/eggs", json={"submitter": "Ash", "pokemon": "missingno"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Pokemon not found: missingno"
        assert memory_store.writes == 0

    def test_blank_submitter_rejected(self, client, memory_store):
        resp = client.post("/api/v1/eggs", json={"submitter": "  ", "pokemon": "pikachu"})
        assert resp.status_code == 422
        assert memory_store.reads == 0

    def test_too_many_moves_rejected(self, client):
        resp = client.post("/api/v1/eggs", json={
            "submitter": "Ash", "pokemon": "pikachu", "moves": list("abcde"),
        })
        assert resp.status_code == 422

    def test_exhausted_conflicts_are_409(self, store_config):
        resp = make_client(AlwaysConflict(), store_config).post(
            "/api/v1/eggs", json={"submitter": "Ash", "pokemon": "pikachu"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Submission failed: is at abc but expected old"

    def test_transport_failure_is_502(self, store_config):
        class ReadOnly(InMemoryDocumentStore):
            async def write(self, document, token, description):
                raise TransportError("Bad credentials", status=401)

        resp = make_client(ReadOnly(), store_config).post(
            "/api/v1/eggs", json={"submitter": "Ash", "pokemon": "pikachu"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Submission failed: Bad credentials"

    def test_lookup_outage_is_502(self, memory_store, store_config):
        class Offline(StubReference):
            async def lookup_pokemon(self, name):
                raise TransportError("PokeAPI unavailable", status=503)

        resp = make_client(memory_store, store_config, Offline()).post(
            "/api/v1/eggs", json={"submitter": "Ash", "pokemon": "pikachu"})
        assert resp.status_code == 502


class TestReference:
    def test_filtered_list(self, client):
        resp = client.get("/api/v1/reference/moves", params={"q": "whi"})
        assert resp.status_code == 200
        assert resp.json() == ["Vine Whip", "Whirlwind"]
        assert resp.headers["Cache-Control"] == "max-age=3600"

    def test_limit(self, client):
        resp = client.get("/api/v1/reference/moves", params={"limit": 1})
        assert resp.json() == ["Vine Whip"]

    def test_unknown_kind(self, client):
        assert client.get("/api/v1/reference/berries").status_code == 404

    def test_list_failure_is_502(self, memory_store, store_config):
        class Offline(StubReference):
            async def load_list(self, kind):
                raise TransportError("PokeAPI unavailable", status=503)

        resp = make_client(memory_store, store_config, Offline()).get(
            "/api/v1/reference/items")
        assert resp.status_code == 502

    def test_pokemon_lookup(self, client):
        resp = client.get("/api/v1/pokemon/pikachu")
        assert resp.status_code == 200
        assert resp.json() == {"id": 25, "name": "pikachu", "label": "Pikachu (#25)",
                               "spriteUrl": "https://sprites.test/25.png"}

    def test_pokemon_not_found(self, client):
        resp = client.get("/api/v1/pokemon/missingno")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Pokemon not found"
