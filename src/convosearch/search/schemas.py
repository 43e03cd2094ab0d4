"""Pydantic schemas for search API responses."""

from pydantic import BaseModel, Field

from convosearch.entities.schemas import EntityKind, SearchableEntity


class SearchResult(BaseModel):
    """Individual search match.

    Attributes:
        kind: Searchable kind of the matched entity.
        key: Storage key of the matched entity.
        snippet: Excerpt of indexed content with highlight markers.
        entity: The matched entity.
    """

    kind: EntityKind
    key: str
    snippet: str = Field(description="Indexed content excerpt with highlight markers")
    entity: SearchableEntity


class SearchResponse(BaseModel):
    """Search response envelope.

    Results are capped and carry no total; a full page of results may
    have been truncated.

    Attributes:
        query: The original search text.
        results: Matched entities in engine order.
        count: Number of results returned.
    """

    query: str
    results: list[SearchResult]
    count: int
