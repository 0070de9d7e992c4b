"""
Reference data endpoints.

GET /api/v1/reference/{kind}?q=&limit=  → cached PokeAPI names, filtered
GET /api/v1/pokemon/{name}              → confirm a single Pokemon
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_reference
from api.models import ErrorOut, PokemonOut
from eggpool.reference import LIST_KINDS, ReferenceClient
from eggpool.search_select import filter_candidates
from utils.errors import EggPoolError, NotFoundError

router = APIRouter(tags=["reference"])

_CACHE_HEADER = {"Cache-Control": "max-age=3600"}


@router.get(
    "/reference/{kind}",
    response_model=list[str],
    responses={404: {"model": ErrorOut}, 502: {"model": ErrorOut}},
    summary="Search a reference list",
)
async def list_reference(
    kind: str,
    q: str = Query("", max_length=100, description="Case-insensitive substring filter"),
    limit: int | None = Query(None, ge=1, le=1000, description="Maximum names returned"),
    reference: ReferenceClient = Depends(get_reference),
) -> JSONResponse:
    """Return Pokemon, move, ability or held-item names containing *q*."""
    if kind not in LIST_KINDS:
        raise HTTPException(status_code=404,
                            detail=f"Unknown reference list '{kind}'. "
                                   f"Choose one of: {', '.join(LIST_KINDS)}")
    try:
        names = await reference.load_list(kind)
    except EggPoolError as e:
        raise HTTPException(status_code=502,
                            detail=f"Failed to load {kind}: {e}") from e
    data = filter_candidates(names, q, limit or reference.config.search_limit)
    return JSONResponse(content=data, headers=_CACHE_HEADER)


@router.get(
    "/pokemon/{name}",
    response_model=PokemonOut,
    responses={404: {"model": ErrorOut}, 502: {"model": ErrorOut}},
    summary="Look up a Pokemon",
)
async def get_pokemon(
    name: str,
    reference: ReferenceClient = Depends(get_reference),
) -> PokemonOut:
    """Confirm a Pokemon by name or national dex number."""
    try:
        entity = await reference.lookup_pokemon(name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Pokemon not found") from None
    except EggPoolError as e:
        raise HTTPException(status_code=502, detail=f"Pokemon lookup failed: {e}") from e
    return PokemonOut.from_entity(entity)
