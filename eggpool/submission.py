"""
Submission workflow: confirm a Pokemon, build the egg record, commit it.

Wires the three interactive pieces together the way the submission form uses
them:

  * a DebouncedLookup confirms the Pokemon the trainer typed;
  * IncrementalSearchSelect pickers (fed from cached reference lists) fill
    the Pokemon, ability, item and move fields, and picking a Pokemon feeds
    the same value into the lookup;
  * an AppendCoordinator commits the finished record.

Required input is checked before anything touches the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from eggpool.coordinator import AppendCoordinator, AppendResult, AppendState
from eggpool.lookup import DebouncedLookup, LookupResult
from eggpool.records import MAX_MOVES, EggRecord, new_record_id, utc_timestamp
from eggpool.reference import PokemonEntity, ReferenceClient
from eggpool.search_select import IncrementalSearchSelect
from utils.errors import ValidationError
from utils.strings import normalize_whitespace

logger = logging.getLogger(__name__)

MISSING_SUBMITTER = "Please enter your trainer name."
MISSING_POKEMON = "Please enter a valid Pokemon name and wait for it to be confirmed."

MOVE_FIELDS = tuple(f"move{i}" for i in range(1, MAX_MOVES + 1))
# picker field -> reference list kind
PICKER_SOURCES: dict[str, str] = {
    "pokemon": "pokemon",
    "ability": "abilities",
    "item": "items",
    **{name: "moves" for name in MOVE_FIELDS},
}


@dataclass
class SubmissionForm:
    """Raw form input, exactly as typed."""

    submitter: str = ""
    nickname: str = ""
    ability: str = ""
    item: str = ""
    moves: list[str] = field(default_factory=list)
    message: str = ""


@dataclass
class SubmissionOutcome:
    ok: bool
    record: Optional[EggRecord] = None
    detail: str = ""
    error: str = ""
    result: Optional[AppendResult] = None


def commit_message(record: EggRecord, entity: PokemonEntity) -> str:
    return f"Add egg from {record.submitter} ({entity.display_name})"


def success_detail(record: EggRecord, entity: PokemonEntity) -> str:
    nick = f' (nicknamed "{record.nickname}")' if record.nickname else ""
    return (f"{entity.display_name}{nick} from {record.submitter} "
            f"has been added to the egg pool.")


def build_record(form: SubmissionForm, entity: Optional[PokemonEntity],
                 record_id: Optional[str] = None,
                 submitted_at: Optional[str] = None) -> EggRecord:
    """Validate *form* against the confirmed *entity* and build the record.

    Raises:
        ValidationError: no trainer name, no confirmed Pokemon, or too many
            moves.
    """
    submitter = normalize_whitespace(form.submitter)
    if not submitter:
        raise ValidationError(MISSING_SUBMITTER)
    if entity is None:
        raise ValidationError(MISSING_POKEMON)
    moves = tuple(m.strip() for m in form.moves if m and m.strip())
    if len(moves) > MAX_MOVES:
        raise ValidationError(f"A Pokemon can know at most {MAX_MOVES} moves.")
    return EggRecord(
        id=record_id or new_record_id(),
        submitter=submitter,
        pokemon=entity.name,
        pokemon_id=entity.id,
        sprite_url=entity.sprite_url,
        nickname=form.nickname.strip(),
        ability=form.ability.strip(),
        item=form.item.strip(),
        moves=moves,
        message=form.message.strip(),
        submitted_at=submitted_at or utc_timestamp(),
    )


class SubmissionWorkflow:
    """State behind one open submission form.

    The lookup quiet period and the picker result limit default to the
    reference client's ``lookup_delay_seconds`` and ``search_limit``.
    """

    def __init__(self, coordinator: AppendCoordinator, reference: ReferenceClient,
                 lookup_delay_seconds: Optional[float] = None,
                 max_results: Optional[int] = None,
                 on_status: Optional[Callable[[str], None]] = None) -> None:
        if lookup_delay_seconds is None:
            lookup_delay_seconds = reference.config.lookup_delay_seconds
        if max_results is None:
            max_results = reference.config.search_limit
        self.coordinator = coordinator
        self.reference = reference
        self.max_results = max_results
        self.lookup = DebouncedLookup(reference.lookup_pokemon,
                                      delay_seconds=lookup_delay_seconds)
        self.pickers: dict[str, IncrementalSearchSelect] = {}
        self._on_status = on_status

    @property
    def confirmed_pokemon(self) -> Optional[PokemonEntity]:
        return self.lookup.confirmed

    def on_pokemon_input(self, text: str) -> None:
        self.lookup.on_input_change(text)

    async def wait_for_lookup(self) -> LookupResult:
        return await self.lookup.wait()

    def attach_lists(self, lists: dict[str, list[str]]) -> dict[str, IncrementalSearchSelect]:
        """Create a picker for every field whose reference list is available."""
        for field_name, kind in PICKER_SOURCES.items():
            if kind not in lists or field_name in self.pickers:
                continue
            picker = IncrementalSearchSelect(lists[kind], max_results=self.max_results)
            if field_name == "pokemon":
                picker.add_listener(self.on_pokemon_input)
            self.pickers[field_name] = picker
        return self.pickers

    async def load_pickers(self) -> dict[str, IncrementalSearchSelect]:
        """Fetch (or reuse cached) reference lists and attach pickers."""
        return self.attach_lists(await self.reference.load_all())

    def close(self) -> None:
        self.lookup.cancel()
        for picker in self.pickers.values():
            picker.detach()
        self.pickers.clear()

    def _status(self, state: AppendState, attempt: int) -> None:
        if self._on_status is None:
            return
        if state is AppendState.RETRYING:
            self._on_status(f"Retrying… ({attempt}/{self.coordinator.max_attempts})")
        elif state is AppendState.READING and attempt == 1:
            self._on_status("Submitting…")

    async def submit(self, form: SubmissionForm) -> SubmissionOutcome:
        """Validate *form*, then append it to the shared document."""
        entity = self.confirmed_pokemon
        try:
            record = build_record(form, entity)
        except ValidationError as e:
            return SubmissionOutcome(ok=False, error=str(e))

        result = await self.coordinator.append(
            record, commit_message(record, entity), on_state=self._status)

        if result.ok:
            return SubmissionOutcome(ok=True, record=record, result=result,
                                     detail=success_detail(record, entity))
        return SubmissionOutcome(ok=False, record=record, result=result,
                                 error=f"Submission failed: {result.message}")
