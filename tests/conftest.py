"""Pytest configuration and fixtures."""

import sys
from collections.abc import Iterator
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from convosearch.app import create_app
from convosearch.config import Settings
from convosearch.contacts import ContactDirectory, E164PhoneNumberService
from convosearch.entities import ENTITY_MODELS
from convosearch.search import (
    ContentDispatcher,
    EntityIndexers,
    FullTextSearchFinder,
    IndexRegistration,
)
from convosearch.storage import Storage

ALICE = "+15551234567"
BOB = "+15557654321"


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        database_path=":memory:",
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """Create test client with the app lifespan running."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def contacts() -> ContactDirectory:
    """Contact directory knowing Alice and Bob."""
    return ContactDirectory({ALICE: "Alice", BOB: "Bob!"})


@pytest.fixture
def indexers(contacts: ContactDirectory) -> EntityIndexers:
    """Indexers backed by the test contacts and real phone parsing."""
    return EntityIndexers(contacts, E164PhoneNumberService())


@pytest.fixture
def dispatcher(indexers: EntityIndexers) -> ContentDispatcher:
    """Content dispatcher over the test indexers."""
    return ContentDispatcher(indexers)


@pytest.fixture
def registration(dispatcher: ContentDispatcher) -> IndexRegistration:
    """Registration for a test index."""
    return IndexRegistration(dispatcher, index_name="test_search", index_version=1)


@pytest.fixture
def storage() -> Iterator[Storage]:
    """In-memory storage accepting all entity models."""
    store = Storage(":memory:", models=ENTITY_MODELS)
    yield store
    store.close()


@pytest.fixture
def indexed_storage(storage: Storage, registration: IndexRegistration) -> Storage:
    """Storage with the test index registered synchronously."""
    registration.register(storage)
    return storage


@pytest.fixture
def finder(registration: IndexRegistration) -> FullTextSearchFinder:
    """Finder for the test index."""
    return FullTextSearchFinder(registration.name)
