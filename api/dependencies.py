"""
Request dependencies for the API.

The app factory stores the configured components on ``app.state``; routes
pull them in through ``Depends`` so tests can swap in an in-memory store or a
stubbed reference client.
"""

from fastapi import HTTPException, Request

from eggpool.coordinator import AppendCoordinator
from eggpool.reference import ReferenceClient
from eggpool.store import VersionedDocumentStore


def get_store(request: Request) -> VersionedDocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Egg document store is not configured. "
                   "Set EGGPOOL_GITHUB_OWNER and EGGPOOL_GITHUB_REPO.",
        )
    return store


def get_coordinator(request: Request) -> AppendCoordinator:
    get_store(request)
    return request.app.state.coordinator


def get_reference(request: Request) -> ReferenceClient:
    return request.app.state.reference
