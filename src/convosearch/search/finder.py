"""Execution of user searches against the conversation search index."""

from collections.abc import Callable
from contextlib import closing
from typing import Any

import structlog

from convosearch.search.errors import ConfigurationIntegrityError
from convosearch.search.normalizer import query_alternatives
from convosearch.storage.database import ReadTransaction, prefix_match_expression

logger = structlog.get_logger()

MAX_SEARCH_RESULTS = 500


class FullTextSearchFinder:
    """Runs search-as-you-type queries and streams back capped results."""

    def __init__(
        self,
        extension_name: str,
        max_search_results: int = MAX_SEARCH_RESULTS,
    ) -> None:
        """Initialize finder.

        Args:
            extension_name: Name the search index was registered under.
            max_search_results: Matches delivered per search, at most.
        """
        self._extension_name = extension_name
        self._max_search_results = max_search_results

    def enumerate_objects(
        self,
        search_text: str,
        transaction: ReadTransaction,
        block: Callable[[Any, str], None],
    ) -> None:
        """Search the index and pass each match to a callback.

        Matches arrive in the engine's native order, which is neither
        ranked nor stable across calls. Enumeration stops silently once
        max_search_results matches have been delivered.

        Args:
            search_text: Raw user input.
            transaction: Open read transaction on the indexed storage.
            block: Called with (entity, snippet) for each match.

        Raises:
            ConfigurationIntegrityError: If the index is not registered
                in the transaction's storage. block is never called.
        """
        ext = transaction.ext(self._extension_name)
        if ext is None:
            logger.error("search_index_unavailable", name=self._extension_name)
            raise ConfigurationIntegrityError(self._extension_name)

        # Prefix match for "search as you type"; FTS5 has no suffix or
        # contains matching.
        prefix_query = prefix_match_expression(query_alternatives(search_text))
        if prefix_query is None:
            return

        count = 0
        with closing(ext.matches(prefix_query)) as matches:
            for match in matches:
                block(match.object, match.snippet)
                count += 1
                if count >= self._max_search_results:
                    logger.debug(
                        "search_results_truncated",
                        limit=self._max_search_results,
                    )
                    break
