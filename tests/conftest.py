"""Shared test fixtures and utilities."""

import pytest

from blob_manager.client_manager import ClientManager
from blob_manager.config import BlobManagerSettings
from blob_manager.constants import CLIENT_ACCOUNTS_TABLE
from blob_manager.storage.memory import MemoryBlobStore, MemoryTableStore
from blob_manager.storage_manager import StorageManager
from tests.fixtures.accounts import (
    CLIENT_ID,
    CLIENT_KEY,
    MOVIE_STORE,
    PICTURE_STORE,
    client_entity,
    container_entity,
)


@pytest.fixture
def settings():
    """In-memory settings."""
    return BlobManagerSettings(provider="memory")


@pytest.fixture
def table_store():
    """Table store seeded with one client and both of its containers."""
    return MemoryTableStore({
        CLIENT_ACCOUNTS_TABLE: [
            client_entity(),
            container_entity(f"{CLIENT_ID}_mov", MOVIE_STORE),
            container_entity(f"{CLIENT_ID}_pic", PICTURE_STORE),
        ]
    })


@pytest.fixture
def blob_store():
    """Blob store with both client containers created and unleased."""
    store = MemoryBlobStore()
    store.create_container(MOVIE_STORE)
    store.create_container(PICTURE_STORE)
    return store


@pytest.fixture
def client_manager(table_store, settings):
    """Client manager for the seeded client."""
    return ClientManager(CLIENT_KEY, table_store, settings)


@pytest.fixture
def storage_manager(blob_store, client_manager):
    """Storage manager for the seeded client."""
    return StorageManager(CLIENT_KEY, blob_store, client_manager)
