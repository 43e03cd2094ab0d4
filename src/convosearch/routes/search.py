"""Full-text search API endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Query, Request, status

from convosearch.search.errors import ConfigurationIntegrityError
from convosearch.search.schemas import SearchResponse, SearchResult

if TYPE_CHECKING:
    from convosearch.search.finder import FullTextSearchFinder
    from convosearch.storage.database import Storage

router = APIRouter(tags=["search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search conversations, messages and contacts",
    description="Prefix search over normalized content, capped at 500 results.",
)
async def search(
    request: Request,
    q: str = Query(
        ...,
        min_length=1,
        max_length=200,
        description="Search text",
    ),
) -> SearchResponse:
    """Search conversations, messages and contacts as the user types.

    Args:
        request: FastAPI request (provides access to app state).
        q: Search text (1-200 characters).

    Returns:
        Matches in engine order with highlighted snippets.

    Raises:
        HTTPException: 503 if the search index is not registered.
    """
    storage: Storage = request.app.state.storage
    finder: FullTextSearchFinder = request.app.state.finder
    results: list[SearchResult] = []

    def collect(entity: Any, snippet: str) -> None:
        results.append(
            SearchResult(kind=entity.kind, key=entity.key, snippet=snippet, entity=entity)
        )

    try:
        with storage.read_transaction() as transaction:
            finder.enumerate_objects(q, transaction, collect)
    except ConfigurationIntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e

    return SearchResponse(query=q, results=results, count=len(results))
