"""
PokeAPI reference data: cached name lists and single-Pokemon lookups.

The lists behind the searchable pickers are large (hundreds of entries) and
change only with a new game generation, so each one is cached for a week
under a fixed key.  Single lookups validate what a trainer typed and are
never cached.

    list                source                                         limit
    ------------------  ---------------------------------------------  -----
    pokemon             /pokemon?limit=807  (national dex #1-807)        807
    moves               /move?limit=750                                  750
    abilities           /ability?limit=250                               250
    items               /item-attribute/{holdable,holdable-passive,
                        holdable-active}/  merged, de-duplicated, sorted
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from utils.cache import TTLCache
from utils.config import ReferenceConfig
from utils.errors import EggPoolError, NotFoundError
from utils.http import SessionManager, get_json
from utils.strings import capitalize, format_name, to_slug

logger = logging.getLogger(__name__)

SPRITE_FALLBACK = ("https://raw.githubusercontent.com/PokeAPI/sprites/master"
                   "/sprites/pokemon/{id}.png")

HOLDABLE_ATTRIBUTES = ("holdable", "holdable-passive", "holdable-active")

# kind -> (cache key, endpoint, limit)
LIST_SOURCES: dict[str, tuple[str, str, int]] = {
    "pokemon": ("egglocke-pokemon-gen7", "pokemon", 807),
    "moves": ("egglocke-moves-gen7", "move", 750),
    "abilities": ("egglocke-abilities-gen7", "ability", 250),
}
ITEMS_CACHE_KEY = "egglocke-items-gen7"
LIST_KINDS = ("pokemon", "moves", "abilities", "items")


@dataclass(frozen=True)
class PokemonEntity:
    """A confirmed Pokemon as returned by a single lookup."""

    id: int
    name: str
    sprite_url: str

    @property
    def display_name(self) -> str:
        return capitalize(self.name)

    @property
    def label(self) -> str:
        return f"{self.display_name} (#{self.id})"


def extract_names(payload: dict[str, Any]) -> list[str]:
    """Formatted names from a paginated ``{results: [{name}]}`` listing."""
    return [format_name(r["name"]) for r in payload.get("results", [])]


class ReferenceClient:
    """Loads reference lists through a TTLCache and looks up single Pokemon."""

    def __init__(self, config: ReferenceConfig | None = None,
                 cache: TTLCache | None = None,
                 session_manager: SessionManager | None = None) -> None:
        self.config = config or ReferenceConfig()
        self.cache = cache if cache is not None else TTLCache()
        self.session_manager = session_manager or SessionManager()

    def _url(self, path: str) -> str:
        return f"{self.config.pokeapi_base}/{path}"

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await asyncio.to_thread(
            get_json, self.session_manager.session, self._url(path),
            params=params, timeout=self.config.timeout_seconds,
        )

    async def load_list(self, kind: str) -> list[str]:
        """Return the display names for *kind* (see ``LIST_KINDS``)."""
        if kind == "items":
            return await self.load_items()
        try:
            cache_key, endpoint, limit = LIST_SOURCES[kind]
        except KeyError:
            raise ValueError(f"Unknown reference list: {kind}") from None

        async def fetch() -> list[str]:
            return extract_names(await self._get(endpoint, {"limit": limit}))

        return await self.cache.get_or_fetch(
            cache_key, self.config.cache_ttl_seconds, fetch)

    async def _holdable_names(self, attribute: str) -> list[str]:
        payload = await self._get(f"item-attribute/{attribute}/")
        return [format_name(i["name"]) for i in payload.get("items", [])]

    async def load_items(self) -> list[str]:
        """Held items: every holdable attribute merged, de-duplicated, sorted.

        Unavailable attributes are skipped.  If none can be read the last
        error propagates, so a stale cached list is kept instead of being
        replaced by an empty one.
        """

        async def fetch() -> list[str]:
            results = await asyncio.gather(
                *(self._holdable_names(a) for a in HOLDABLE_ATTRIBUTES),
                return_exceptions=True)
            groups, failure = [], None
            for attribute, result in zip(HOLDABLE_ATTRIBUTES, results):
                if isinstance(result, EggPoolError):
                    logger.warning("Item attribute %s unavailable: %s", attribute, result)
                    failure = result
                elif isinstance(result, BaseException):
                    raise result
                else:
                    groups.append(result)
            if not groups:
                raise failure
            return sorted({name for group in groups for name in group})

        return await self.cache.get_or_fetch(
            ITEMS_CACHE_KEY, self.config.cache_ttl_seconds, fetch)

    async def load_all(self) -> dict[str, list[str]]:
        """Load every list concurrently.

        A list that fails to load is logged and left out of the result so
        the others can still be used.
        """
        results = await asyncio.gather(
            *(self.load_list(kind) for kind in LIST_KINDS), return_exceptions=True)
        lists: dict[str, list[str]] = {}
        for kind, result in zip(LIST_KINDS, results):
            if isinstance(result, EggPoolError):
                logger.warning("Reference list %s failed to load: %s", kind, result)
                continue
            if isinstance(result, BaseException):
                raise result
            lists[kind] = result
        return lists

    async def lookup_pokemon(self, name_or_id: str | int) -> PokemonEntity:
        """Confirm a single Pokemon by name or national dex number.

        Raises:
            NotFoundError: PokeAPI has no such Pokemon.
            TransportError: the lookup itself failed.
        """
        slug = to_slug(str(name_or_id))
        if not slug:
            raise NotFoundError("Pokemon not found")
        try:
            data = await self._get(f"pokemon/{slug}")
        except NotFoundError:
            raise NotFoundError("Pokemon not found", status=404) from None
        sprite = (data.get("sprites") or {}).get("front_default")
        return PokemonEntity(
            id=int(data["id"]),
            name=data["name"],
            sprite_url=sprite or SPRITE_FALLBACK.format(id=data["id"]),
        )
