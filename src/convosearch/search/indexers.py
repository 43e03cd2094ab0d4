"""Per-kind indexers producing the searchable text of an entity."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

from convosearch.entities.schemas import DirectConversation, GroupConversation, Message
from convosearch.search.errors import MalformedRecipientIdentity
from convosearch.search.normalizer import normalize_for_indexing

if TYPE_CHECKING:
    from convosearch.contacts.services import ContactsService, PhoneNumberService

logger = structlog.get_logger()

T = TypeVar("T")


class SearchIndexer(Generic[T]):
    """Searchable-text producer for items of type T."""

    def __init__(self, index_block: Callable[[T], str]) -> None:
        self._index_block = index_block

    def index(self, item: T) -> str:
        return self._index_block(item)


class EntityIndexers:
    """Indexers for every searchable kind, sharing one recipient indexer.

    Attributes:
        recipient: Indexes a recipient id with its digits and display name.
        group_conversation: Indexes group name plus every member.
        direct_conversation: Indexes the counterpart recipient.
        message: Indexes the message body.
    """

    def __init__(
        self,
        contacts: ContactsService,
        phone_numbers: PhoneNumberService,
    ) -> None:
        """Initialize indexers.

        Args:
            contacts: Resolves recipient ids to display names.
            phone_numbers: Parses recipient ids into phone numbers.
        """
        self._contacts = contacts
        self._phone_numbers = phone_numbers

        self.recipient: SearchIndexer[str] = SearchIndexer(self._index_recipient)
        self.group_conversation: SearchIndexer[GroupConversation] = SearchIndexer(
            self._index_group_conversation
        )
        self.direct_conversation: SearchIndexer[DirectConversation] = SearchIndexer(
            self._index_direct_conversation
        )
        self.message: SearchIndexer[Message] = SearchIndexer(self._index_message)

    def _national_digits(self, recipient_id: str) -> str:
        """Extract the national number digits of a recipient id.

        Unparseable ids contribute nothing rather than failing the
        containing entity.

        Args:
            recipient_id: Recipient id, expected in E.164 form.

        Returns:
            National number digits, or "" when the id does not parse.
        """
        try:
            national_number = self._phone_numbers.parse(recipient_id).national_number()
            if national_number is None:
                raise MalformedRecipientIdentity(recipient_id, "no national number")
        except MalformedRecipientIdentity as e:
            logger.warning(
                "recipient_identity_unparseable",
                recipient_id=recipient_id,
                reason=e.reason,
            )
            return ""

        return "".join(ch for ch in national_number if ch.isdecimal())

    def _index_recipient(self, recipient_id: str) -> str:
        display_name = self._contacts.display_name(recipient_id)
        national_digits = self._national_digits(recipient_id)
        return normalize_for_indexing(f"{recipient_id} {national_digits} {display_name}")

    def _index_group_conversation(self, group: GroupConversation) -> str:
        group_name = group.name or ""
        member_strings = " ".join(
            self.recipient.index(member_id) for member_id in group.member_ids
        )
        return normalize_for_indexing(f"{group_name} {member_strings}")

    def _index_direct_conversation(self, conversation: DirectConversation) -> str:
        # Callers check has_ever_had_message first
        return normalize_for_indexing(self.recipient.index(conversation.recipient_id))

    def _index_message(self, message: Message) -> str:
        return normalize_for_indexing(message.body or "")
