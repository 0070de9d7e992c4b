"""
Pytest fixtures for egg pool tests.

Provides a fake ``requests`` session that serves canned JSON per URL, a
stubbed PokeAPI reference client, sample egg records and an in-memory
document store.  Nothing here touches the network.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.errors import NotFoundError  # noqa: E402
from eggpool.records import EggRecord  # noqa: E402
from eggpool.reference import PokemonEntity, ReferenceClient  # noqa: E402
from eggpool.store import InMemoryDocumentStore  # noqa: E402
from utils.cache import TTLCache  # noqa: E402
from utils.config import ReferenceConfig  # noqa: E402

POKEAPI = "https://pokeapi.test/api/v2"


# ── HTTP fakes ────────────────────────────────────────────────────────────────

class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None,
                 raise_on_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._raise_on_json = raise_on_json

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._raise_on_json or self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Serves FakeResponses keyed by URL and records every call."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[tuple[str, str, dict]] = []

    def _respond(self, method: str, url: str, kwargs: dict) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, {"detail": "Not found."})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(method, url, kwargs)
        return route

    def get(self, url, **kwargs):
        return self._respond("GET", url, kwargs)

    def put(self, url, **kwargs):
        return self._respond("PUT", url, kwargs)

    def urls(self, method: str = "GET") -> list[str]:
        return [u for m, u, _ in self.calls if m == method]


class FakeSessionManager:
    def __init__(self, session: FakeSession) -> None:
        self.session = session

    def close(self) -> None:
        pass


def listing(*slugs: str) -> FakeResponse:
    return FakeResponse(200, {"count": len(slugs),
                              "results": [{"name": s, "url": ""} for s in slugs]})


def item_attribute(*slugs: str) -> FakeResponse:
    return FakeResponse(200, {"items": [{"name": s, "url": ""} for s in slugs]})


def pokemon_payload(dex_id: int, name: str, sprite: str | None = "default") -> FakeResponse:
    front = f"https://sprites.test/{dex_id}.png" if sprite == "default" else sprite
    return FakeResponse(200, {"id": dex_id, "name": name,
                              "sprites": {"front_default": front}})


@pytest.fixture
def pokeapi_session():
    """FakeSession with a tiny PokeAPI."""
    return FakeSession({
        f"{POKEAPI}/pokemon": listing("bulbasaur", "pikachu", "mr-mime"),
        f"{POKEAPI}/move": listing("vine-whip", "whirlwind", "will-o-wisp"),
        f"{POKEAPI}/ability": listing("static", "overgrow"),
        f"{POKEAPI}/item-attribute/holdable/": item_attribute("light-ball", "leftovers"),
        f"{POKEAPI}/item-attribute/holdable-passive/": item_attribute("leftovers", "focus-sash"),
        f"{POKEAPI}/item-attribute/holdable-active/": item_attribute("oran-berry"),
        f"{POKEAPI}/pokemon/pikachu": pokemon_payload(25, "pikachu"),
        f"{POKEAPI}/pokemon/25": pokemon_payload(25, "pikachu"),
        f"{POKEAPI}/pokemon/mr-mime": pokemon_payload(122, "mr-mime", sprite=None),
    })


@pytest.fixture
def reference_config():
    config = ReferenceConfig()
    config.pokeapi_base = POKEAPI
    config.cache_ttl_days = 7
    return config


@pytest.fixture
def reference_client(reference_config, pokeapi_session):
    return ReferenceClient(reference_config, TTLCache(),
                           FakeSessionManager(pokeapi_session))


# ── Domain fixtures ───────────────────────────────────────────────────────────

PIKACHU = PokemonEntity(id=25, name="pikachu", sprite_url="https://sprites.test/25.png")
BULBASAUR = PokemonEntity(id=1, name="bulbasaur", sprite_url="https://sprites.test/1.png")


class StubReference:
    """Reference client double that knows a fixed set of Pokemon."""

    def __init__(self, known: dict[str, PokemonEntity] | None = None,
                 lists: dict[str, list[str]] | None = None) -> None:
        self.known = known if known is not None else {"pikachu": PIKACHU,
                                                      "bulbasaur": BULBASAUR}
        self.lists = lists if lists is not None else {
            "pokemon": ["Bulbasaur", "Pikachu"],
            "moves": ["Vine Whip", "Whirlwind", "Will O Wisp"],
            "abilities": ["Overgrow", "Static"],
            "items": ["Leftovers", "Light Ball"],
        }
        self.config = ReferenceConfig()
        self.lookups: list[str] = []

    async def lookup_pokemon(self, name):
        self.lookups.append(str(name))
        entity = self.known.get(str(name).strip().lower())
        if entity is None:
            raise NotFoundError("Pokemon not found", status=404)
        return entity

    async def load_list(self, kind):
        return list(self.lists[kind])

    async def load_all(self):
        return {k: list(v) for k, v in self.lists.items()}


@pytest.fixture
def stub_reference():
    return StubReference()


def make_record(n: int, submitter: str = "Ash", pokemon: str = "pikachu") -> EggRecord:
    return EggRecord(id=f"rec-{n}", submitter=submitter, pokemon=pokemon,
                     pokemon_id=25, submitted_at="2024-06-19T18:40:00.000Z")


@pytest.fixture
def sample_eggs():
    """Two raw egg entries as stored in eggs.json."""
    return [
        {"id": "1", "submitter": "Misty", "pokemon": "staryu", "pokemonId": 120,
         "spriteUrl": "https://sprites.test/120.png", "nickname": "",
         "ability": "Illuminate", "item": "", "moves": ["Water Gun"],
         "message": "", "submittedAt": "2024-06-18T10:00:00.000Z"},
        {"id": "2", "submitter": "Brock", "pokemon": "onix", "pokemonId": 95,
         "spriteUrl": "https://sprites.test/95.png", "nickname": "Rocky",
         "ability": "Sturdy", "item": "Hard Stone", "moves": ["Tackle", "Bind"],
         "message": "Rock solid", "submittedAt": "2024-06-18T11:00:00.000Z"},
    ]


@pytest.fixture
def memory_store(sample_eggs):
    return InMemoryDocumentStore(sample_eggs)


async def no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)
