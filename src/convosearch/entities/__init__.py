"""Searchable domain entities."""

from convosearch.entities.schemas import (
    ENTITY_MODELS,
    ContactRecord,
    DirectConversation,
    EntityKind,
    GroupConversation,
    Message,
    SearchableEntity,
)

__all__ = [
    "ENTITY_MODELS",
    "ContactRecord",
    "DirectConversation",
    "EntityKind",
    "GroupConversation",
    "Message",
    "SearchableEntity",
]
