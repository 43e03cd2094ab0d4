"""Endpoints for storing and removing searchable entities."""

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from convosearch.contacts.services import ContactDirectory
from convosearch.entities.schemas import ContactRecord, EntityKind, SearchableEntity
from convosearch.storage.database import Storage

logger = structlog.get_logger()

router = APIRouter(prefix="/entities", tags=["entities"])


class EntityWrite(BaseModel):
    """Request body wrapping the entity to store.

    Attributes:
        entity: Entity of any searchable kind.
    """

    entity: SearchableEntity


class EntityWriteResponse(BaseModel):
    """Outcome of storing an entity.

    Attributes:
        kind: Searchable kind of the entity.
        collection: Storage collection the entity was written to.
        key: Storage key of the entity.
        indexed: Whether the search index holds a row for the entity.
    """

    kind: EntityKind
    collection: str
    key: str
    indexed: bool


@router.put("", response_model=EntityWriteResponse)
async def put_entity(request: Request, body: EntityWrite) -> EntityWriteResponse:
    """Insert or replace an entity, reindexing it.

    A contact carrying a display name updates the contact directory
    before it is stored. Entities already indexed under the recipient
    keep their old name until they are written again.

    Args:
        request: FastAPI request (provides access to app state).
        body: Entity to store.

    Returns:
        Where the entity was stored and whether it was indexed.
    """
    storage: Storage = request.app.state.storage
    entity = body.entity

    if isinstance(entity, ContactRecord) and entity.display_name:
        contacts: ContactDirectory = request.app.state.contacts
        contacts.update(entity.recipient_id, entity.display_name)

    with storage.read_write_transaction() as transaction:
        indexed_by = transaction.set_object(entity.collection, entity.key, entity)

    indexed = request.app.state.settings.extension_name in indexed_by
    logger.info(
        "entity_stored",
        kind=entity.kind.value,
        key=entity.key,
        indexed=indexed,
    )
    return EntityWriteResponse(
        kind=entity.kind,
        collection=entity.collection,
        key=entity.key,
        indexed=indexed,
    )


@router.delete("/{collection}/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(request: Request, collection: str, key: str) -> None:
    """Remove an entity and its index entry.

    Args:
        request: FastAPI request (provides access to app state).
        collection: Storage collection of the entity.
        key: Storage key of the entity.

    Raises:
        HTTPException: 404 if nothing is stored under collection/key.
    """
    storage: Storage = request.app.state.storage

    with storage.read_write_transaction() as transaction:
        removed = transaction.remove_object(collection, key)

    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No entity at {collection}/{key}",
        )
    logger.info("entity_removed", collection=collection, key=key)
