"""
Listing endpoints.

Reads are public.  Writes pass through ``require_admin``, which only
enforces a session when the deployment sets ``ADMIN_REQUIRED``.
Request bodies are accepted as arbitrary JSON objects and handed to
the normalizer, which owns all coercion and validation.  Errors are
returned as ``{"error": "<message>"}`` by the handler registered in
``main``.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from centrum_api.app.core.security import require_admin
from centrum_api.app.schemas.admin import OkResponse
from centrum_api.app.schemas.listing import Listing
from centrum_api.app.services.listing_store import (
    ListingNotFoundError,
    ListingStore,
    StorageError,
)
from centrum_api.app.services.normalizer import ListingValidationError, normalize_listing


logger = logging.getLogger(__name__)

router = APIRouter()

# Assigned by the server; values sent by clients are ignored.
SERVER_MANAGED_FIELDS = ("id", "createdAt", "updatedAt")


def get_store(request: Request) -> ListingStore:
    """Dependency returning the store the running app was built with."""
    return request.app.state.store


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("", response_model=List[Listing])
def list_listings(store: ListingStore = Depends(get_store)) -> List[Listing]:
    """Return all listings, newest first."""
    try:
        return store.list_all()
    except StorageError as e:
        logger.error("Listing query failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e


@router.get("/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, store: ListingStore = Depends(get_store)) -> Listing:
    """Return a single listing or 404."""
    try:
        return store.get_by_id(listing_id)
    except ListingNotFoundError as e:
        raise _not_found() from e
    except StorageError as e:
        raise _bad_request(e) from e


@router.post(
    "",
    response_model=Listing,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_listing(
    payload: Optional[Dict[str, Any]] = Body(None),
    store: ListingStore = Depends(get_store),
) -> Listing:
    """Validate and store a new listing.

    The body may contain any subset of listing fields; missing or
    malformed required fields produce 400 with the first validation
    message.
    """
    data = {k: v for k, v in (payload or {}).items() if k not in SERVER_MANAGED_FIELDS}
    try:
        listing = normalize_listing(data)
        return store.insert(listing)
    except (ListingValidationError, StorageError) as e:
        raise _bad_request(e) from e


@router.put("/{listing_id}", response_model=Listing, dependencies=[Depends(require_admin)])
def update_listing(
    listing_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    store: ListingStore = Depends(get_store),
) -> Listing:
    """Merge the body into an existing listing.

    Fields not present in the body keep their stored values; the
    merged record is validated again before it is written.
    """
    try:
        return store.update(listing_id, payload or {})
    except ListingNotFoundError as e:
        raise _not_found() from e
    except (ListingValidationError, StorageError) as e:
        raise _bad_request(e) from e


@router.delete("/{listing_id}", response_model=OkResponse, dependencies=[Depends(require_admin)])
def delete_listing(listing_id: str, store: ListingStore = Depends(get_store)) -> OkResponse:
    """Delete a listing permanently."""
    try:
        store.delete(listing_id)
    except ListingNotFoundError as e:
        raise _not_found() from e
    except StorageError as e:
        raise _bad_request(e) from e
    return OkResponse()
