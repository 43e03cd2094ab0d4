"""Contact name resolution and phone number parsing services."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import phonenumbers

from convosearch.search.errors import MalformedRecipientIdentity


class ContactsService(Protocol):
    """Resolves recipient ids to human-readable names."""

    def display_name(self, recipient_id: str) -> str:
        """Return the name shown for a recipient."""
        ...


class PhoneNumber(Protocol):
    """Parsed phone number."""

    def national_number(self) -> str | None:
        """Return the national significant number, if available."""
        ...


class PhoneNumberService(Protocol):
    """Parses recipient ids into phone numbers."""

    def parse(self, recipient_id: str) -> PhoneNumber:
        """Parse a recipient id.

        Raises:
            MalformedRecipientIdentity: If the id is not a phone number.
        """
        ...


class ContactDirectory:
    """In-memory contacts service.

    Recipients without a known name resolve to their recipient id.
    """

    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        """Initialize directory.

        Args:
            names: Initial mapping of recipient id to display name.
        """
        self._names: dict[str, str] = dict(names or {})

    def update(self, recipient_id: str, name: str) -> None:
        """Set the display name for a recipient.

        Args:
            recipient_id: Recipient to name.
            name: Display name.
        """
        self._names[recipient_id] = name

    def display_name(self, recipient_id: str) -> str:
        """Resolve a recipient's display name.

        Args:
            recipient_id: Recipient to look up.

        Returns:
            Known display name, or the recipient id itself.
        """
        return self._names.get(recipient_id, recipient_id)


@dataclass(frozen=True, slots=True)
class ParsedPhoneNumber:
    """Phone number parsed by the phonenumbers library."""

    number: phonenumbers.PhoneNumber

    def national_number(self) -> str | None:
        if self.number.national_number is None:
            return None
        return phonenumbers.national_significant_number(self.number)


class E164PhoneNumberService:
    """Phone number service for recipient ids in E.164 form ("+15551234567")."""

    def parse(self, recipient_id: str) -> ParsedPhoneNumber:
        """Parse an E.164 recipient id.

        Args:
            recipient_id: Recipient id, expected to carry a leading "+".

        Returns:
            Parsed phone number.

        Raises:
            MalformedRecipientIdentity: If phonenumbers rejects the id.
        """
        try:
            number = phonenumbers.parse(recipient_id, None)
        except phonenumbers.NumberParseException as e:
            raise MalformedRecipientIdentity(recipient_id, str(e)) from e
        return ParsedPhoneNumber(number)
