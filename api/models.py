"""
Pydantic request/response models for the egg pool API.

Response field names follow the stored document (camelCase) so API clients
and the raw ``eggs.json`` agree on shape.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from eggpool.records import MAX_MOVES, EggRecord
from eggpool.reference import PokemonEntity


# ── Egg models ────────────────────────────────────────────────────────────────

class EggOut(BaseModel):
    """One submitted egg."""
    id: str = Field(..., description="Unique egg ID", examples=["1718822400000-3fa2c1"])
    submitter: str = Field(..., description="Trainer who submitted the egg", examples=["Ash"])
    pokemon: str = Field(..., description="Pokemon name as returned by PokeAPI", examples=["pikachu"])
    pokemonId: int | None = Field(None, description="National dex number", examples=[25])
    spriteUrl: str = Field("", description="Sprite image URL")
    nickname: str = Field("", examples=["Sparky"])
    ability: str = Field("", examples=["Static"])
    item: str = Field("", description="Held item", examples=["Light Ball"])
    moves: list[str] = Field(default_factory=list, examples=[["Thunderbolt", "Quick Attack"]])
    message: str = Field("", description="Note for whoever hatches the egg")
    submittedAt: str = Field("", description="ISO-8601 UTC submission time",
                             examples=["2024-06-19T18:40:00.000Z"])

    @classmethod
    def from_record(cls, record: EggRecord) -> "EggOut":
        return cls(
            id=record.id,
            submitter=record.submitter,
            pokemon=record.pokemon,
            pokemonId=record.pokemon_id,
            spriteUrl=record.sprite_url,
            nickname=record.nickname,
            ability=record.ability,
            item=record.item,
            moves=list(record.moves),
            message=record.message,
            submittedAt=record.submitted_at,
        )


class GalleryOut(BaseModel):
    """All submitted eggs, newest first."""
    count: int = Field(..., description="Number of eggs in the pool", examples=[12])
    count_text: str = Field(..., examples=["12 eggs submitted"])
    eggs: list[EggOut]


class EggSubmission(BaseModel):
    """An egg submission from a trainer."""
    submitter: str = Field(..., max_length=100, description="Trainer name")
    pokemon: str = Field(..., max_length=100, description="Pokemon name or dex number")
    nickname: str = Field("", max_length=100)
    ability: str = Field("", max_length=100)
    item: str = Field("", max_length=100)
    moves: list[str] = Field(default_factory=list, max_length=MAX_MOVES)
    message: str = Field("", max_length=2000)

    @field_validator("submitter", "pokemon")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SubmissionOut(BaseModel):
    """Successful submission response."""
    status: str = Field(..., examples=["added"])
    id: str = Field(..., description="ID of the new egg")
    detail: str = Field(..., examples=['Pikachu (nicknamed "Sparky") from Ash has been added to the egg pool.'])
    attempts: int = Field(..., description="Read-modify-write attempts used", examples=[1])


# ── Reference models ──────────────────────────────────────────────────────────

class PokemonOut(BaseModel):
    """A confirmed Pokemon."""
    id: int = Field(..., examples=[25])
    name: str = Field(..., examples=["pikachu"])
    label: str = Field(..., examples=["Pikachu (#25)"])
    spriteUrl: str

    @classmethod
    def from_entity(cls, entity: PokemonEntity) -> "PokemonOut":
        return cls(id=entity.id, name=entity.name, label=entity.label,
                   spriteUrl=entity.sprite_url)


class ErrorOut(BaseModel):
    detail: str
