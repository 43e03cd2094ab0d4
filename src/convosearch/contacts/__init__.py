"""Collaborator services used while indexing recipients."""

from convosearch.contacts.services import (
    ContactDirectory,
    ContactsService,
    E164PhoneNumberService,
    ParsedPhoneNumber,
    PhoneNumber,
    PhoneNumberService,
)

__all__ = [
    "ContactDirectory",
    "ContactsService",
    "E164PhoneNumberService",
    "ParsedPhoneNumber",
    "PhoneNumber",
    "PhoneNumberService",
]
