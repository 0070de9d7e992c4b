"""
Data model for the shared egg document.

The document stored in the repository is a JSON array of egg records.  Keys
use the camelCase names the submission form has always written, e.g.::

    {
      "id": "1718822400000-3fa2c1",
      "submitter": "Ash",
      "pokemon": "pikachu",
      "pokemonId": 25,
      "spriteUrl": "https://.../25.png",
      "nickname": "Sparky",
      "ability": "Static",
      "item": "Light Ball",
      "moves": ["Thunderbolt", "Quick Attack"],
      "message": "Take care of him!",
      "submittedAt": "2024-06-19T18:40:00.000Z"
    }

Records are immutable once built.  A record read from the document keeps the
entry it came from and is written back exactly as it was, so appending never
rewrites what another client committed.  Keys this module does not know about
are also exposed in ``extra``.
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

MAX_MOVES = 4

# Python attribute -> document key
_FIELD_KEYS: dict[str, str] = {
    "id": "id",
    "submitter": "submitter",
    "pokemon": "pokemon",
    "pokemon_id": "pokemonId",
    "sprite_url": "spriteUrl",
    "nickname": "nickname",
    "ability": "ability",
    "item": "item",
    "moves": "moves",
    "message": "message",
    "submitted_at": "submittedAt",
}
_KNOWN_KEYS = frozenset(_FIELD_KEYS.values())


def new_record_id(now_ms: int | None = None) -> str:
    """Return a unique, timestamp-prefixed record id.

    The millisecond prefix keeps ids roughly sortable by submission time; the
    random suffix keeps two trainers submitting in the same millisecond apart.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{uuid.uuid4().hex[:6]}"


def utc_timestamp(dt: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    dt = (dt or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class EggRecord:
    """One submitted egg."""

    id: str
    submitter: str
    pokemon: str
    pokemon_id: int | None = None
    sprite_url: str = ""
    nickname: str = ""
    ability: str = ""
    item: str = ""
    moves: tuple[str, ...] = ()
    message: str = ""
    submitted_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    # Entry exactly as read from the document; None for newly built records
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        if self.raw is not None:
            return dict(self.raw)
        d: dict[str, Any] = {}
        for attr, key in _FIELD_KEYS.items():
            value = getattr(self, attr)
            d[key] = list(value) if attr == "moves" else value
        for key, value in self.extra.items():
            d.setdefault(key, value)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EggRecord":
        """Build a record from a document entry, tolerating missing fields."""
        moves = data.get("moves") or []
        if not isinstance(moves, list):
            moves = [moves]
        return cls(
            id=str(data.get("id", "")),
            submitter=str(data.get("submitter", "")),
            pokemon=str(data.get("pokemon", "")),
            pokemon_id=data.get("pokemonId"),
            sprite_url=data.get("spriteUrl") or "",
            nickname=data.get("nickname") or "",
            ability=data.get("ability") or "",
            item=data.get("item") or "",
            moves=tuple(str(m) for m in moves if m),
            message=data.get("message") or "",
            submitted_at=data.get("submittedAt") or "",
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
            raw=dict(data),
        )


@dataclass(frozen=True)
class Document:
    """The shared egg list plus the version token it was read at."""

    records: tuple[EggRecord, ...] = ()
    token: str | None = None

    def __len__(self) -> int:
        return len(self.records)

    def appended(self, record: EggRecord) -> "Document":
        """Return a copy with *record* at the end; ``self`` is left untouched."""
        return Document(records=self.records + (record,), token=self.token)

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.records]

    def encode(self) -> str:
        """Serialize the records the way the document is stored on disk."""
        return json.dumps(self.to_list(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def decode(cls, text: str, token: str | None = None) -> "Document":
        """Parse stored document text.

        Raises:
            ValueError: if the text is not a JSON array of objects.
        """
        data = json.loads(text) if text.strip() else []
        if not isinstance(data, list):
            raise ValueError("egg document must be a JSON array")
        records = []
        for entry in data:
            if not isinstance(entry, dict):
                raise ValueError("egg document entries must be objects")
            records.append(EggRecord.from_dict(entry))
        return cls(records=tuple(records), token=token)
