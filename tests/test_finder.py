"""Search execution and index registration tests."""

import asyncio
from collections.abc import Iterator
from typing import Any

import pytest

from convosearch.entities import (
    ContactRecord,
    DirectConversation,
    GroupConversation,
    Message,
)
from convosearch.search import (
    MAX_SEARCH_RESULTS,
    ConfigurationIntegrityError,
    ContentDispatcher,
    FullTextSearchFinder,
    IndexRegistration,
)
from convosearch.storage import FullTextMatch, Storage

ALICE = "+15551234567"
BOB = "+15557654321"


def _save(storage: Storage, *entities: Any) -> None:
    with storage.read_write_transaction() as transaction:
        for entity in entities:
            transaction.set_object(entity.collection, entity.key, entity)


def _search(
    storage: Storage,
    finder: FullTextSearchFinder,
    text: str,
) -> list[tuple[Any, str]]:
    results: list[tuple[Any, str]] = []
    with storage.read_transaction() as transaction:
        finder.enumerate_objects(
            text,
            transaction,
            lambda entity, snippet: results.append((entity, snippet)),
        )
    return results


class _FakeHandle:
    def __init__(self, total: int) -> None:
        self.total = total
        self.produced = 0
        self.closed = False
        self.queries: list[str] = []

    def matches(self, query: str) -> Iterator[FullTextMatch]:
        self.queries.append(query)
        try:
            for i in range(self.total):
                self.produced += 1
                yield FullTextMatch(f"snippet {i}", "messages", str(i), i)
        finally:
            self.closed = True


class _FakeTransaction:
    def __init__(self, handle: _FakeHandle | None) -> None:
        self.handle = handle

    def ext(self, name: str) -> _FakeHandle | None:
        return self.handle


BOOK_CLUB = GroupConversation(group_id="g1", name="Book Club", member_ids=[ALICE, BOB])


def test_book_club_found_by_name(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """Group conversations match on their name."""
    _save(indexed_storage, BOOK_CLUB)

    results = _search(indexed_storage, finder, "book")

    assert [entity for entity, _ in results] == [BOOK_CLUB]
    assert "<mark>" in results[0][1]


@pytest.mark.parametrize("text", ["Bob", "alice", "Ali", "555-1234", "5557654321", "1555"])
def test_book_club_found_by_member(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
    text: str,
) -> None:
    """Members' names, prefixes and formatted numbers all reach the group."""
    _save(indexed_storage, BOOK_CLUB)
    assert [entity for entity, _ in _search(indexed_storage, finder, text)] == [BOOK_CLUB]


def test_no_suffix_matching(indexed_storage: Storage, finder: FullTextSearchFinder) -> None:
    """Only token prefixes match."""
    _save(indexed_storage, BOOK_CLUB)
    assert _search(indexed_storage, finder, "lice") == []


@pytest.mark.parametrize("text", [ALICE, "+1 555-1234", "$5"])
def test_query_operators_and_symbols_taken_literally(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
    text: str,
) -> None:
    """Leading "+" and other symbols do not break the engine query."""
    contact = ContactRecord(recipient_id=ALICE)
    _save(indexed_storage, contact)

    assert [entity for entity, _ in _search(indexed_storage, finder, text)] == [contact]


@pytest.mark.parametrize("text", ["NOT", "AND", "NEAR", "OR"])
def test_query_keywords_searched_as_words(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
    text: str,
) -> None:
    """Uppercase engine keywords are matched as ordinary words."""
    message = Message(message_id="m1", thread_id="g1", body="not and near or far")
    _save(indexed_storage, message)

    assert [entity for entity, _ in _search(indexed_storage, finder, text)] == [message]


def test_prefix_applied_to_normalized_query() -> None:
    """The engine receives quoted query terms with a trailing wildcard."""
    handle = _FakeHandle(total=0)
    finder = FullTextSearchFinder("idx")

    finder.enumerate_objects("555-1234", _FakeTransaction(handle), lambda e, s: None)

    assert handle.queries == ['"5551234" OR "5551234"*']


def test_results_capped_at_max(indexed_storage: Storage, finder: FullTextSearchFinder) -> None:
    """No more than 500 matches are delivered, regardless of matches held."""
    _save(
        indexed_storage,
        *(Message(message_id=f"m{i}", thread_id="g1", body=f"hello {i}") for i in range(600)),
    )

    results = _search(indexed_storage, finder, "hello")

    assert len(results) == MAX_SEARCH_RESULTS == 500


def test_enumeration_stopped_at_cap() -> None:
    """Enumeration is closed once the cap is reached."""
    handle = _FakeHandle(total=1000)
    calls: list[Any] = []
    finder = FullTextSearchFinder("idx", max_search_results=3)

    finder.enumerate_objects("hello", _FakeTransaction(handle), lambda e, s: calls.append(e))

    assert calls == [0, 1, 2]
    assert handle.produced == 3
    assert handle.closed


def test_missing_index_raises_without_results(storage: Storage) -> None:
    """Querying an unregistered index is an integrity error."""
    calls: list[Any] = []
    finder = FullTextSearchFinder("never_registered_v1")

    with storage.read_transaction() as transaction:
        with pytest.raises(ConfigurationIntegrityError):
            finder.enumerate_objects("hello", transaction, lambda e, s: calls.append(e))

    assert calls == []


def test_empty_query_returns_nothing(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """Blank search text does not raise."""
    _save(indexed_storage, BOOK_CLUB)
    assert _search(indexed_storage, finder, "   ") == []


def test_direct_conversation_hidden_until_first_message(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """Never-messaged direct conversations surface only after a message."""
    conversation = DirectConversation(recipient_id=ALICE)
    _save(indexed_storage, conversation)
    assert _search(indexed_storage, finder, "Alice") == []

    conversation = DirectConversation(recipient_id=ALICE, has_ever_had_message=True)
    _save(indexed_storage, conversation)
    assert [entity for entity, _ in _search(indexed_storage, finder, "Alice")] == [
        conversation
    ]


def test_group_and_direct_conversation_with_same_key_kept_apart(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """A group id equal to a recipient id does not overwrite the direct conversation."""
    group = GroupConversation(group_id=ALICE, name="Alpine")
    direct = DirectConversation(recipient_id=ALICE, has_ever_had_message=True)
    _save(indexed_storage, direct, group)

    with indexed_storage.read_transaction() as transaction:
        assert transaction.object(direct.collection, direct.key) == direct
        assert transaction.object(group.collection, group.key) == group

    assert [entity for entity, _ in _search(indexed_storage, finder, "alpine")] == [group]
    assert [entity for entity, _ in _search(indexed_storage, finder, "alice")] == [direct]


def test_group_with_malformed_member_searchable(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """A bad member id does not keep the group out of the index."""
    group = GroupConversation(group_id="g2", name="Climbing", member_ids=["bogus", BOB])
    _save(indexed_storage, group)

    assert [entity for entity, _ in _search(indexed_storage, finder, "climb")] == [group]
    assert [entity for entity, _ in _search(indexed_storage, finder, "Bob")] == [group]


def test_messages_and_contacts_searchable(
    indexed_storage: Storage,
    finder: FullTextSearchFinder,
) -> None:
    """Messages match on body and contacts on recipient content."""
    message = Message(message_id="m1", thread_id="g1", body="Dinner at eight?")
    contact = ContactRecord(recipient_id=BOB)
    _save(indexed_storage, message, contact)

    assert [entity for entity, _ in _search(indexed_storage, finder, "dinner")] == [message]
    assert [entity for entity, _ in _search(indexed_storage, finder, "bob")] == [contact]


def test_registration_indexes_existing_entities(
    storage: Storage,
    registration: IndexRegistration,
    finder: FullTextSearchFinder,
) -> None:
    """Entities stored before registration are searchable afterwards."""
    _save(storage, BOOK_CLUB)
    registration.register(storage)

    assert [entity for entity, _ in _search(storage, finder, "book")] == [BOOK_CLUB]


def test_async_registration(
    storage: Storage,
    registration: IndexRegistration,
    finder: FullTextSearchFinder,
) -> None:
    """Asynchronous registration leaves the index ready once awaited."""
    _save(storage, BOOK_CLUB)

    asyncio.run(registration.async_register(storage))

    assert storage.is_registered(registration.name)
    assert [entity for entity, _ in _search(storage, finder, "club")] == [BOOK_CLUB]


def test_registration_name_is_versioned(dispatcher: ContentDispatcher) -> None:
    """Index names are stable and carry the schema version."""
    registration = IndexRegistration(dispatcher, index_name="search", index_version=3)
    assert registration.name == "search_v3"


def test_new_version_drops_stale_versions(
    storage: Storage,
    dispatcher: ContentDispatcher,
) -> None:
    """Registering a new index version removes older ones of the same index."""
    IndexRegistration(dispatcher, index_name="search", index_version=1).register(storage)
    IndexRegistration(dispatcher, index_name="other", index_version=1).register(storage)
    IndexRegistration(dispatcher, index_name="search_vip", index_version=1).register(storage)
    IndexRegistration(dispatcher, index_name="search", index_version=2).register(storage)

    assert storage.extension_names() == ["other_v1", "search_v2", "search_vip_v1"]
