"""Client media repositories on Azure Table and Blob storage."""

from typing import Optional, Tuple

from .client_manager import ClientManager
from .config import BlobManagerSettings, load_settings
from .errors import ErrorDescriptor, ErrorKind
from .models import (
    ContainerInfo,
    ContainersInfo,
    MediaType,
    OperationResult,
    RepositoryInfo,
    RequestOptions,
)
from .storage import make_blob_store, make_table_store
from .storage_manager import StorageManager


def connect(
    client_key: str,
    settings: Optional[BlobManagerSettings] = None,
) -> Tuple[ClientManager, StorageManager]:
    """Build both managers for a client, sharing one set of backends.

    Args:
        client_key: Client access key
        settings: Settings to use; loaded from the environment if omitted

    Returns:
        Tuple of (ClientManager, StorageManager)
    """
    settings = settings or load_settings()
    client_manager = ClientManager(client_key, make_table_store(settings), settings)
    storage_manager = StorageManager(client_key, make_blob_store(settings), client_manager)
    return client_manager, storage_manager


__all__ = [
    "BlobManagerSettings",
    "ClientManager",
    "ContainerInfo",
    "ContainersInfo",
    "ErrorDescriptor",
    "ErrorKind",
    "MediaType",
    "OperationResult",
    "RepositoryInfo",
    "RequestOptions",
    "StorageManager",
    "connect",
    "load_settings",
    "make_blob_store",
    "make_table_store",
]
