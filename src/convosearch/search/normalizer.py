"""Text canonicalization for indexed content and search queries."""

import unicodedata


def _strip_punctuation(text: str) -> str:
    """Remove every Unicode punctuation character (categories Pc..Po).

    Args:
        text: Input text.

    Returns:
        Text with punctuation removed, other characters in original order.
    """
    return "".join(ch for ch in text if not unicodedata.category(ch).startswith("P"))


def _digits_only(text: str) -> str:
    """Keep only decimal digit characters (category Nd).

    Args:
        text: Input text.

    Returns:
        The decimal digits of text, in order.
    """
    return "".join(ch for ch in text if ch.isdecimal())


def normalize_for_indexing(text: str) -> str:
    """Canonicalize text before it is written to the search index.

    Trims surrounding whitespace and newlines and removes punctuation.
    Whitespace left at either end by the removal (e.g. "Bob !") is trimmed
    as well, so the result is stable under repeated normalization.

    Args:
        text: Raw searchable content.

    Returns:
        Normalized content.
    """
    return _strip_punctuation(text.strip()).strip()


def query_alternatives(text: str) -> list[str]:
    """Split user search input into the alternatives a match may satisfy.

    Punctuation is removed the same way as at indexing time. If the input
    holds any digits, a digits-only alternative follows so formatted
    phone numbers ("555-1234") match the unformatted digits in the index.

    Args:
        text: Raw user search input.

    Returns:
        [chars] or [chars, digits].
    """
    trimmed = text.strip()
    normalized_chars = _strip_punctuation(trimmed).strip()
    normalized_digits = _digits_only(trimmed)

    if normalized_digits:
        return [normalized_chars, normalized_digits]
    return [normalized_chars]


def normalize_for_query(text: str) -> str:
    """Canonicalize user search input into a query string.

    Args:
        text: Raw user search input.

    Returns:
        Query string, either "<chars>" or "<chars> OR <digits>".
    """
    return " OR ".join(query_alternatives(text))
