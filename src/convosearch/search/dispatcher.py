"""Routing of arbitrary objects to the indexer for their kind."""

import structlog

from convosearch.entities.schemas import (
    ContactRecord,
    DirectConversation,
    GroupConversation,
    Message,
)
from convosearch.search.errors import UnrecognizedEntityKind
from convosearch.search.indexers import EntityIndexers

logger = structlog.get_logger()


class ContentDispatcher:
    """Produces the indexed content for any stored object.

    This is the single place that decides which kinds are searchable.
    Every member of SearchableEntity must have a branch in _route.
    """

    def __init__(self, indexers: EntityIndexers) -> None:
        """Initialize dispatcher.

        Args:
            indexers: Per-kind indexers to route to.
        """
        self._indexers = indexers

    def _route(self, entity: object) -> str | None:
        """Index an entity according to its kind.

        Args:
            entity: Object to index.

        Returns:
            Normalized content, or None when the entity is excluded.

        Raises:
            UnrecognizedEntityKind: If the entity is not a searchable kind.
        """
        if isinstance(entity, GroupConversation):
            return self._indexers.group_conversation.index(entity)
        if isinstance(entity, DirectConversation):
            # Never-messaged counterparts belong in contact listings,
            # not conversation results.
            if not entity.has_ever_had_message:
                return None
            return self._indexers.direct_conversation.index(entity)
        if isinstance(entity, Message):
            return self._indexers.message.index(entity)
        if isinstance(entity, ContactRecord):
            return self._indexers.recipient.index(entity.recipient_id)
        raise UnrecognizedEntityKind(entity)

    def index_content(self, entity: object) -> str | None:
        """Compute the searchable content of an entity.

        Args:
            entity: Object presented for indexing.

        Returns:
            Normalized content, or None if the entity is not indexed.
        """
        try:
            return self._route(entity)
        except UnrecognizedEntityKind as e:
            logger.debug("search_entity_not_indexed", type=e.type_name)
            return None
