"""Error types raised by the search core."""


class ConfigurationIntegrityError(Exception):
    """Raised when the search index cannot be reached from a transaction.

    Indicates the index was never registered, or was registered under a
    different name than the one being queried.
    """

    def __init__(self, extension_name: str) -> None:
        """Initialize integrity error.

        Args:
            extension_name: Name of the index that could not be found.
        """
        super().__init__(f"Search index {extension_name!r} is not registered")
        self.extension_name = extension_name


class MalformedRecipientIdentity(Exception):
    """Raised when a recipient id cannot be parsed as a phone number."""

    def __init__(self, recipient_id: str, reason: str | None = None) -> None:
        """Initialize malformed identity error.

        Args:
            recipient_id: The recipient id that failed to parse.
            reason: Optional parser detail.
        """
        message = f"Unparseable recipient id: {recipient_id!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.recipient_id = recipient_id
        self.reason = reason


class UnrecognizedEntityKind(Exception):
    """Raised when an object presented for indexing is not a searchable kind."""

    def __init__(self, entity: object) -> None:
        super().__init__(f"Not a searchable kind: {type(entity).__name__}")
        self.type_name = type(entity).__name__
