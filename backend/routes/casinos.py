"""Casino name autocomplete."""

from fastapi import APIRouter, Depends, Request

from backend.deps import require_password
from betfunnels.casinos import search_casino_names

from .models import SearchBody, SearchResult

router = APIRouter()


@router.post("/search-casinos", dependencies=[Depends(require_password)])
async def search_casinos(body: SearchBody, request: Request) -> SearchResult:
    """Case-insensitive substring search over casino names, A to Z."""
    state = request.app.state
    options = await search_casino_names(state.store, body.query, state.settings.casino_search_limit)
    return SearchResult(options=options)
