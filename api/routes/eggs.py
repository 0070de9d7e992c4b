"""
Egg pool endpoints.

GET  /api/v1/eggs  → every submitted egg, newest first
POST /api/v1/eggs  → confirm the Pokemon, then append the egg to the shared
                     document (retrying on version conflicts)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_coordinator, get_reference, get_store
from api.models import EggOut, EggSubmission, ErrorOut, GalleryOut, SubmissionOut
from eggpool.coordinator import AppendCoordinator
from eggpool.gallery import load_gallery
from eggpool.reference import ReferenceClient
from eggpool.store import VersionedDocumentStore
from eggpool.submission import (
    SubmissionForm,
    build_record,
    commit_message,
    success_detail,
)
from utils.errors import EggPoolError, ErrorKind, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/eggs", tags=["eggs"])


@router.get(
    "",
    response_model=GalleryOut,
    responses={502: {"model": ErrorOut, "description": "Egg document could not be read"}},
    summary="List submitted eggs",
)
async def list_eggs(store: VersionedDocumentStore = Depends(get_store)) -> GalleryOut:
    """Return the whole egg pool, newest submission first."""
    try:
        view = await load_gallery(store)
    except EggPoolError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load eggs: {e}") from e
    return GalleryOut(
        count=view.count,
        count_text=view.count_text,
        eggs=[EggOut.from_record(r) for r in view.eggs],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SubmissionOut,
    responses={
        201: {"description": "Egg appended to the pool"},
        409: {"model": ErrorOut, "description": "Still conflicting after every retry"},
        422: {"model": ErrorOut, "description": "Invalid input or unknown Pokemon"},
        502: {"model": ErrorOut, "description": "Upstream failure"},
    },
    summary="Submit an egg",
)
async def submit_egg(
    submission: EggSubmission,
    coordinator: AppendCoordinator = Depends(get_coordinator),
    reference: ReferenceClient = Depends(get_reference),
) -> SubmissionOut:
    """Confirm the Pokemon with PokeAPI and append the egg."""
    try:
        entity = await reference.lookup_pokemon(submission.pokemon)
    except NotFoundError:
        raise HTTPException(status_code=422,
                            detail=f"Pokemon not found: {submission.pokemon}") from None
    except EggPoolError as e:
        raise HTTPException(status_code=502, detail=f"Pokemon lookup failed: {e}") from e

    form = SubmissionForm(
        submitter=submission.submitter,
        nickname=submission.nickname,
        ability=submission.ability,
        item=submission.item,
        moves=submission.moves,
        message=submission.message,
    )
    try:
        record = build_record(form, entity)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    result = await coordinator.append(record, commit_message(record, entity))
    if not result.ok:
        code = 409 if result.error.kind is ErrorKind.CONFLICT else 502
        raise HTTPException(status_code=code,
                            detail=f"Submission failed: {result.message}")

    logger.info("Egg %s added by %s", record.id, record.submitter,
                extra={"record_id": record.id, "attempt": result.attempts})
    return SubmissionOut(status="added", id=record.id,
                         detail=success_detail(record, entity),
                         attempts=result.attempts)
