"""Full-text indexing and search over conversations, messages and contacts."""

from convosearch.search.dispatcher import ContentDispatcher
from convosearch.search.errors import (
    ConfigurationIntegrityError,
    MalformedRecipientIdentity,
    UnrecognizedEntityKind,
)
from convosearch.search.finder import MAX_SEARCH_RESULTS, FullTextSearchFinder
from convosearch.search.indexers import EntityIndexers, SearchIndexer
from convosearch.search.normalizer import normalize_for_indexing, normalize_for_query
from convosearch.search.registration import CONTENT_COLUMN, IndexRegistration
from convosearch.search.schemas import SearchResponse, SearchResult

__all__ = [
    "CONTENT_COLUMN",
    "MAX_SEARCH_RESULTS",
    "ConfigurationIntegrityError",
    "ContentDispatcher",
    "EntityIndexers",
    "FullTextSearchFinder",
    "IndexRegistration",
    "MalformedRecipientIdentity",
    "SearchIndexer",
    "SearchResponse",
    "SearchResult",
    "UnrecognizedEntityKind",
    "normalize_for_indexing",
    "normalize_for_query",
]
