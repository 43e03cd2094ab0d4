"""Pydantic models for the searchable entity kinds."""

from enum import Enum
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Discriminator for the closed set of searchable kinds."""

    GROUP_CONVERSATION = "group_conversation"
    DIRECT_CONVERSATION = "direct_conversation"
    MESSAGE = "message"
    CONTACT = "contact"


class GroupConversation(BaseModel):
    """Conversation with a named set of members.

    Attributes:
        kind: Kind discriminator.
        group_id: Group identifier.
        name: Group display name, if one was set.
        member_ids: Recipient ids of the group members.
    """

    collection: ClassVar[str] = "group_conversations"

    kind: Literal[EntityKind.GROUP_CONVERSATION] = EntityKind.GROUP_CONVERSATION
    group_id: str = Field(min_length=1)
    name: str | None = None
    member_ids: list[str] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return self.group_id


class DirectConversation(BaseModel):
    """One-to-one conversation with a single counterpart.

    Attributes:
        kind: Kind discriminator.
        recipient_id: Counterpart recipient id (E.164).
        has_ever_had_message: Whether a message was ever sent or received.
    """

    collection: ClassVar[str] = "direct_conversations"

    kind: Literal[EntityKind.DIRECT_CONVERSATION] = EntityKind.DIRECT_CONVERSATION
    recipient_id: str = Field(min_length=1)
    has_ever_had_message: bool = False

    @property
    def key(self) -> str:
        return self.recipient_id


class Message(BaseModel):
    """Message within a conversation.

    Attributes:
        kind: Kind discriminator.
        message_id: Message identifier.
        thread_id: Key of the conversation holding the message.
        body: Message text, absent for attachment-only messages.
    """

    collection: ClassVar[str] = "messages"

    kind: Literal[EntityKind.MESSAGE] = EntityKind.MESSAGE
    message_id: str = Field(min_length=1)
    thread_id: str
    body: str | None = None

    @property
    def key(self) -> str:
        return self.message_id


class ContactRecord(BaseModel):
    """Known contact account.

    Attributes:
        kind: Kind discriminator.
        recipient_id: Contact recipient id (E.164).
        display_name: Name to register with the contact directory, if known.
    """

    collection: ClassVar[str] = "contacts"

    kind: Literal[EntityKind.CONTACT] = EntityKind.CONTACT
    recipient_id: str = Field(min_length=1)
    display_name: str | None = None

    @property
    def key(self) -> str:
        return self.recipient_id


SearchableEntity = Annotated[
    Union[GroupConversation, DirectConversation, Message, ContactRecord],
    Field(discriminator="kind"),
]

ENTITY_MODELS: tuple[type[BaseModel], ...] = (
    GroupConversation,
    DirectConversation,
    Message,
    ContactRecord,
)
