"""Factory for creating table and blob storage instances."""

from ..config import BlobManagerSettings
from .azure import AzureBlobStore, AzureTableStore
from .base import BlobStore, TableStore
from .memory import MemoryBlobStore, MemoryTableStore


def make_table_store(settings: BlobManagerSettings) -> TableStore:
    """
    Create table store instance based on settings.

    The memory provider yields an empty store, to be seeded by tests.

    Args:
        settings: Validated settings

    Returns:
        TableStore instance

    Raises:
        NotImplementedError: If provider is not supported
    """
    if settings.provider == "azure":
        return AzureTableStore(settings.connection_string, retry_total=settings.retry_total)
    elif settings.provider == "memory":
        return MemoryTableStore({settings.table_name: []})
    else:
        raise NotImplementedError(f"Provider {settings.provider} not supported")


def make_blob_store(settings: BlobManagerSettings) -> BlobStore:
    """
    Create blob store instance based on settings.

    The memory provider yields a store with no containers, to be seeded by tests.

    Args:
        settings: Validated settings

    Returns:
        BlobStore instance

    Raises:
        NotImplementedError: If provider is not supported
    """
    if settings.provider == "azure":
        return AzureBlobStore(settings.connection_string, retry_total=settings.retry_total)
    elif settings.provider == "memory":
        return MemoryBlobStore()
    else:
        raise NotImplementedError(f"Provider {settings.provider} not supported")
