"""Item CRUD and search endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from pydantic import ValidationError

from itemsync.schemas import (
    MIN_YEAR,
    Category,
    Item,
    ItemCreate,
    ItemPatch,
    SearchFilters,
    SearchResult,
    YearRange,
)

if TYPE_CHECKING:
    from itemsync.search.service import SearchService
    from itemsync.sync import Synchronizer

router = APIRouter(prefix="/items", tags=["items"])


def _synchronizer(request: Request) -> Synchronizer:
    return request.app.state.synchronizer


# Declared before /{item_id} so "search" is not captured as an id
@router.get(
    "/search",
    response_model=SearchResult,
    summary="Search items by free text and filters",
    description="Fuzzy-matches name and category; filters restrict without scoring.",
)
async def search_items(
    request: Request,
    q: str | None = Query(default=None, max_length=200, description="Search term"),
    category: Category | None = Query(default=None, description="Exact category"),
    year: int | None = Query(default=None, ge=MIN_YEAR, description="Exact year"),
    year_min: int | None = Query(default=None, ge=MIN_YEAR, description="Lowest year"),
    year_max: int | None = Query(default=None, ge=MIN_YEAR, description="Highest year"),
) -> SearchResult:
    """Search the index.

    Args:
        request: FastAPI request (provides access to app state).
        q: Optional free-text term; blank lists everything matching the filters.
        category: Optional category filter.
        year: Optional exact year filter.
        year_min: Optional inclusive lower year bound.
        year_max: Optional inclusive upper year bound.

    Returns:
        Total match count and up to 50 ranked hits.
    """
    try:
        year_range = (
            YearRange(min=year_min, max=year_max)
            if year_min is not None or year_max is not None
            else None
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail="year_min must not exceed year_max",
        ) from e

    search_service: SearchService = request.app.state.search_service
    filters = SearchFilters(category=category, year=year, year_range=year_range)
    return await search_service.search(q, filters)


@router.post("", response_model=Item, status_code=status.HTTP_201_CREATED)
async def create_item(request: Request, data: ItemCreate) -> Item:
    """Create an item and index it."""
    return await _synchronizer(request).create(data)


@router.get("", response_model=list[Item])
async def list_items(request: Request) -> list[Item]:
    return await _synchronizer(request).list_items()


@router.get("/{item_id}", response_model=Item)
async def get_item(request: Request, item_id: str) -> Item:
    return await _synchronizer(request).get(item_id)


@router.put("/{item_id}", response_model=Item)
async def update_item(request: Request, item_id: str, patch: ItemPatch) -> Item:
    """Update the supplied fields of an item; omitted fields are unchanged."""
    return await _synchronizer(request).update(item_id, patch)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(request: Request, item_id: str) -> Response:
    await _synchronizer(request).delete(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
