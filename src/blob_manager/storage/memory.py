"""In-memory table and blob storage for tests and local development."""

import copy
import hashlib
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, List, Optional

from ..constants import LEASE_STATE_AVAILABLE, LEASE_STATUS_UNLOCKED
from ..errors import BackendError
from ..models import DownloadResult, RequestOptions, UploadResult
from ..storage_models import ContainerState, QueryResult, TableQuery


class MemoryTableStore:
    """
    Table store kept in a dict (avoids an Azurite dependency in tests).

    Entities are plain dicts with ``PartitionKey`` and ``RowKey``.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables) if tables else {}

    def upsert_entity(self, table: str, entity: Dict[str, Any]) -> None:
        """Insert an entity, replacing one with the same partition/row key."""
        rows = self.tables.setdefault(table, [])
        for i, row in enumerate(rows):
            if (row.get("PartitionKey"), row.get("RowKey")) == (
                entity.get("PartitionKey"),
                entity.get("RowKey"),
            ):
                rows[i] = dict(entity)
                return
        rows.append(dict(entity))

    def query(self, table: str, query: TableQuery, options: RequestOptions) -> QueryResult:
        if table not in self.tables:
            return QueryResult(
                is_successful=False,
                status_code=404,
                error=BackendError(f"Table not found: {table}", status_code=404),
            )
        entries = [dict(row) for row in self.tables[table] if query.matches(row)]
        return QueryResult(entries=entries, is_successful=True, status_code=200)


class MemoryBlobStore:
    """Blob store kept in a dict, with per-container lease state."""

    def __init__(self):
        self._blobs: Dict[str, Dict[str, bytes]] = {}
        self._leases: Dict[str, ContainerState] = {}

    def create_container(self, name: str) -> None:
        """Create an empty, unleased container (no-op if it exists)."""
        if name in self._blobs:
            return
        self._blobs[name] = {}
        self._leases[name] = ContainerState(
            exists=True,
            lease_status=LEASE_STATUS_UNLOCKED,
            lease_state=LEASE_STATE_AVAILABLE,
        )

    def set_lease(self, name: str, status: str, state: str) -> None:
        """Set the lease status/state reported for a container."""
        if name not in self._blobs:
            raise BackendError(f"Container not found: {name}", status_code=404)
        self._leases[name] = ContainerState(exists=True, lease_status=status, lease_state=state)

    def blob_names(self, container: str) -> List[str]:
        return sorted(self._blobs.get(container, {}))

    def container_state(self, container: str, options: RequestOptions) -> ContainerState:
        if container not in self._blobs:
            return ContainerState(exists=False)
        return self._leases[container]

    def upload(
        self,
        container: str,
        blob_name: str,
        stream: BinaryIO,
        length: int,
        options: RequestOptions,
    ) -> UploadResult:
        if container not in self._blobs:
            raise BackendError(f"Container not found: {container}", status_code=404)

        data = stream.read(length)
        if len(data) != length:
            raise BackendError(
                f"Stream ended after {len(data)} of {length} bytes",
                status_code=400,
            )

        self._blobs[container][blob_name] = data
        return UploadResult(
            container=container,
            blob_name=blob_name,
            etag=f'"{hashlib.md5(data).hexdigest()}"',
            last_modified=datetime.now(timezone.utc).isoformat(),
        )

    def download(
        self,
        container: str,
        blob_name: str,
        sink: BinaryIO,
        options: RequestOptions,
    ) -> DownloadResult:
        try:
            data = self._blobs[container][blob_name]
        except KeyError:
            raise BackendError(f"Blob not found: {container}/{blob_name}", status_code=404) from None

        sink.write(data)
        return DownloadResult(container=container, blob_name=blob_name, size=len(data))
