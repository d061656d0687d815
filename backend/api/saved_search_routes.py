"""Saved search CRUD, check-now, results navigation and badge endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from backend.api.auth import get_current_user_id, get_services
from backend.database.models import SavedSearch
from backend.services.errors import (
    AuthorizationError,
    IndexUnavailableError,
    NotFoundError,
    ValidationError,
)
from backend.services.factory import SearchServices
from backend.services.saved_search_service import MAX_NAME_LENGTH, search_filters

saved_search_router = APIRouter(prefix="/saved-searches", tags=["saved-searches"])


# --- Request/Response Models ---

class CreateSavedSearchRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    filters: dict = Field(default_factory=dict)
    alert_enabled: bool = True
    alert_frequency: str = "daily"


class UpdateSavedSearchRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    filters: dict | None = None
    alert_enabled: bool | None = None
    alert_frequency: str | None = None


class SavedSearchResponse(BaseModel):
    id: int
    name: str
    filters: dict
    filter_summary: list[str]
    alert_enabled: bool
    alert_frequency: str
    total_matches: int
    new_matches_count: int
    last_checked: str
    created_at: str
    updated_at: str


class CheckResponse(BaseModel):
    search_id: int
    new_listing_ids: list[str]
    new_count: int
    total_matches: int
    checked_at: str | None
    discarded: bool = False


class ResultsResponse(BaseModel):
    search_id: int
    listing_ids: list[str]
    total_matches: int


class BadgeResponse(BaseModel):
    total_new_matches: int
    by_search: dict[int, int]


# --- Endpoints ---

@saved_search_router.get("/", response_model=list[SavedSearchResponse])
def list_saved_searches(
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """List the current user's saved searches in creation order."""
    return [_to_response(s) for s in services.store.list_by_user(user_id)]


@saved_search_router.post("/", response_model=SavedSearchResponse, status_code=201)
def create_saved_search(
    req: CreateSavedSearchRequest,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Save a new search."""
    try:
        search = services.store.create(
            user_id,
            req.name,
            req.filters,
            alert_enabled=req.alert_enabled,
            alert_frequency=req.alert_frequency,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _to_response(search)


@saved_search_router.get("/badge", response_model=BadgeResponse)
def get_badge(
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Unread new-match counts for the navigation badge."""
    return BadgeResponse(
        total_new_matches=services.badges.total_new_matches(user_id),
        by_search=services.badges.badges_by_search(user_id),
    )


@saved_search_router.get("/{search_id}", response_model=SavedSearchResponse)
def get_saved_search(
    search_id: int,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Get a single saved search by ID."""
    try:
        search = services.store.get(search_id, user_id)
    except (NotFoundError, AuthorizationError) as exc:
        raise _http_error(exc)
    return _to_response(search)


@saved_search_router.patch("/{search_id}", response_model=SavedSearchResponse)
def update_saved_search(
    search_id: int,
    req: UpdateSavedSearchRequest,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Rename, re-filter or change alert settings. New filters restart match tracking."""
    patch = req.model_dump(exclude_unset=True)
    for key, value in patch.items():
        if value is None:
            raise HTTPException(status_code=422, detail=f"{key} cannot be null")
    try:
        search = services.store.update(search_id, user_id, patch)
    except (ValidationError, NotFoundError, AuthorizationError) as exc:
        raise _http_error(exc)
    return _to_response(search)


@saved_search_router.delete("/{search_id}")
def delete_saved_search(
    search_id: int,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Delete a saved search. Deleting an unknown id succeeds."""
    try:
        services.store.delete(search_id, user_id)
    except AuthorizationError as exc:
        raise _http_error(exc)
    return {"deleted": True}


@saved_search_router.post("/{search_id}/check", response_model=CheckResponse)
def check_saved_search(
    search_id: int,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Check for new matches right away, regardless of alert cadence."""
    try:
        delta = services.scheduler.check_now(search_id, user_id)
    except (NotFoundError, AuthorizationError, IndexUnavailableError) as exc:
        raise _http_error(exc)
    if delta is None:
        return CheckResponse(
            search_id=search_id, new_listing_ids=[], new_count=0,
            total_matches=0, checked_at=None, discarded=True,
        )
    return CheckResponse(
        search_id=search_id,
        new_listing_ids=sorted(delta.new_listing_ids),
        new_count=len(delta.new_listing_ids),
        total_matches=delta.total_matches,
        checked_at=str(delta.checked_at),
    )


@saved_search_router.post("/{search_id}/results", response_model=ResultsResponse)
def open_results(
    search_id: int,
    user_id: str = Depends(get_current_user_id),
    services: SearchServices = Depends(get_services),
):
    """Open a search's results: acknowledge new matches and return listings, newest first."""
    try:
        matches = services.tracker.current_matches(search_id, user_id)
        updated = {lid: services.index.listing_updated_at(lid) for lid in matches}
        services.tracker.mark_as_checked(search_id, user_id)
    except (NotFoundError, AuthorizationError, IndexUnavailableError) as exc:
        raise _http_error(exc)

    ordered = sorted(matches, key=lambda lid: (updated[lid] or datetime.min, lid), reverse=True)
    return ResultsResponse(search_id=search_id, listing_ids=ordered, total_matches=len(ordered))


# --- Helpers ---

def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail="Saved search not found")
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=403, detail="Not allowed to access this saved search")
    if isinstance(exc, IndexUnavailableError):
        return HTTPException(status_code=503, detail="Listing search is temporarily unavailable")
    return HTTPException(status_code=422, detail=str(exc))


def _to_response(s: SavedSearch) -> SavedSearchResponse:
    return SavedSearchResponse(
        id=s.id,
        name=s.name,
        filters=s.filters,
        filter_summary=search_filters(s).describe(),
        alert_enabled=s.alert_enabled,
        alert_frequency=s.alert_frequency,
        total_matches=s.total_matches,
        new_matches_count=s.new_matches_count,
        last_checked=str(s.last_checked),
        created_at=str(s.created_at),
        updated_at=str(s.updated_at),
    )
