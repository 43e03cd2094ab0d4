"""SQLite object storage with full-text search extensions."""

from convosearch.storage.database import (
    FullTextMatch,
    FullTextSearchExtension,
    FullTextSearchTransaction,
    ReadTransaction,
    ReadWriteTransaction,
    SnippetOptions,
    Storage,
    prefix_match_expression,
)

__all__ = [
    "FullTextMatch",
    "FullTextSearchExtension",
    "FullTextSearchTransaction",
    "ReadTransaction",
    "ReadWriteTransaction",
    "SnippetOptions",
    "Storage",
    "prefix_match_expression",
]
