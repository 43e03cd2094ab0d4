"""Registration of the conversation search index with storage."""

import re
from typing import Any

import structlog

from convosearch.search.dispatcher import ContentDispatcher
from convosearch.storage.database import FullTextSearchExtension, Storage

logger = structlog.get_logger()

# Everything searchable goes into one column; no per-field search
CONTENT_COLUMN = "content"


class IndexRegistration:
    """Declares the search index schema and binds the content dispatcher.

    The index is registered under a stable, versioned name. Registering
    a new version drops older versions of the same index, which is the
    migration path for changes to what gets indexed.
    """

    def __init__(
        self,
        dispatcher: ContentDispatcher,
        index_name: str,
        index_version: int,
    ) -> None:
        """Initialize registration.

        Args:
            dispatcher: Produces indexed content per object.
            index_name: Base index name.
            index_version: Index schema version.
        """
        self._dispatcher = dispatcher
        self._index_name = index_name
        self._index_version = index_version

    @property
    def name(self) -> str:
        """Extension name the index is registered under."""
        return f"{self._index_name}_v{self._index_version}"

    def _handle(self, columns: dict[str, str], collection: str, key: str, obj: Any) -> None:
        content = self._dispatcher.index_content(obj)
        if content is not None:
            columns[CONTENT_COLUMN] = content

    def extension(self) -> FullTextSearchExtension:
        """Build the single-column index schema and its callback.

        Returns:
            Extension to register with storage.
        """
        return FullTextSearchExtension(column_names=(CONTENT_COLUMN,), handler=self._handle)

    def _drop_stale_versions(self, storage: Storage) -> None:
        version_pattern = re.compile(rf"{re.escape(self._index_name)}_v\d+")
        for name in storage.extension_names():
            if version_pattern.fullmatch(name) and name != self.name:
                storage.unregister(name)
                logger.info("search_index_version_dropped", name=name, current=self.name)

    def register(self, storage: Storage) -> None:
        """Register the index and block until it is populated.

        Args:
            storage: Object store to index.
        """
        storage.register(self.extension(), self.name)
        self._drop_stale_versions(storage)
        logger.info("search_index_registered", name=self.name)

    async def async_register(self, storage: Storage) -> None:
        """Register the index without blocking the event loop.

        Args:
            storage: Object store to index.
        """
        await storage.async_register(self.extension(), self.name)
        self._drop_stale_versions(storage)
        logger.info("search_index_registered", name=self.name)
