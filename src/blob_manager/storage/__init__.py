"""Storage backends for table lookups and blob transfers."""

from .base import BlobStore, TableStore
from .factory import make_blob_store, make_table_store

__all__ = ["BlobStore", "TableStore", "make_blob_store", "make_table_store"]
