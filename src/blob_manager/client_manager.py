"""Client repository resolution.

A client is identified by an access key. Its record in the client accounts
table names the client; two further records in the container partition,
keyed ``{client_id}_mov`` and ``{client_id}_pic``, describe the blob
container used for each media type.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .config import BlobManagerSettings
from .errors import BlobManagerError, InvalidOptionsError, NotFoundError, QueryFailedError
from .models import (
    ContainerInfo,
    ContainersInfo,
    MediaType,
    OperationResult,
    RepositoryInfo,
    RequestOptions,
)
from .options import Callback, complete, normalize_args
from .storage.base import TableStore
from .storage_models import PropertyCondition, TableQuery

logger = logging.getLogger(__name__)


def _client_key_value(client_key: str) -> Any:
    """Client keys are stored as GUIDs; anything else is matched as a string."""
    try:
        return uuid.UUID(str(client_key))
    except ValueError:
        return client_key


class ClientManager:
    """
    Resolves a client access key to its media repository descriptor.

    The table store is built once by the caller and injected; this class
    holds no connection state of its own.
    """

    MESSAGE = {
        "CLIENT_QUERY_FAILED": "Could not retrieve the client record.",
        "NO_CLIENT_FOR_CLIENT_KEY": "No data found for the given clientKey.",
        "CONTAINER_QUERY_FAILED": "Could not retrieve the client container records.",
        "NO_CONTAINER_FOR_CLIENT_ID": "No data found for the given clientID.",
        "INVALID_CLIENT_RECORD": "The client record is missing fields or has invalid values.",
        "INVALID_CONTAINER_RECORD": "A container record is missing fields or has invalid values.",
    }

    def __init__(
        self,
        client_key: str,
        table_store: TableStore,
        settings: Optional[BlobManagerSettings] = None,
    ):
        """
        Initialize client manager.

        Args:
            client_key: Client access key
            table_store: Backend used for table lookups
            settings: Table and partition names; in-memory defaults if omitted
        """
        self.client_key = client_key
        self.table_store = table_store
        self.settings = settings or BlobManagerSettings(provider="memory")

    def get_repository_info(
        self,
        options: Any = None,
        callback: Optional[Callback] = None,
    ) -> OperationResult:
        """
        Resolve the client's repository descriptor, containers included.

        Args:
            options: RequestOptions or mapping; a callable here is taken as the callback
            callback: Called with ``(error, RepositoryInfo)``

        Returns:
            OperationResult with an ErrorDescriptor or the RepositoryInfo
        """
        try:
            request_options, callback = normalize_args(options, callback)
        except InvalidOptionsError as e:
            logger.warning("Repository lookup rejected: %s", e.message)
            return complete(e.callback, e.to_descriptor())
        try:
            info = self.fetch_repository_info(request_options)
        except BlobManagerError as e:
            logger.warning("Repository lookup failed: %s", e.message)
            return complete(callback, e.to_descriptor())
        return complete(callback, None, info)

    def get_containers_info(
        self,
        client_id: str,
        options: Any = None,
        callback: Optional[Callback] = None,
    ) -> OperationResult:
        """
        Resolve the movie and picture container descriptors of a client.

        Args:
            client_id: Client ID (row key of the client record)
            options: RequestOptions or mapping; a callable here is taken as the callback
            callback: Called with ``(error, ContainersInfo)``

        Returns:
            OperationResult with an ErrorDescriptor or the ContainersInfo
        """
        try:
            request_options, callback = normalize_args(options, callback)
        except InvalidOptionsError as e:
            logger.warning("Container lookup rejected: %s", e.message)
            return complete(e.callback, e.to_descriptor())
        try:
            containers = self.fetch_containers_info(client_id, request_options)
        except BlobManagerError as e:
            logger.warning("Container lookup failed for %s: %s", client_id, e.message)
            return complete(callback, e.to_descriptor())
        return complete(callback, None, containers)

    def fetch_repository_info(self, options: RequestOptions) -> RepositoryInfo:
        """
        Look up the client record, then its containers.

        Raises:
            QueryFailedError: If the table query was unsuccessful or a record
                could not be mapped
            NotFoundError: If no client or container record matched
        """
        query = TableQuery(
            partition_key=self.settings.data_partition,
            conditions=[
                PropertyCondition(name="ClientKey", value=_client_key_value(self.client_key))
            ],
        )
        result = self.table_store.query(
            self.settings.table_name,
            query,
            options.merged_over(self.settings.default_options),
        )

        if not result.is_successful:
            raise QueryFailedError(
                self.MESSAGE["CLIENT_QUERY_FAILED"],
                status_code=result.status_code,
                err=result.error,
            )

        # Client keys are unique; only the first record is used
        try:
            repository_info = self.map_repository_info(result.entries[0] if result.entries else None)
        except (KeyError, ValidationError) as e:
            raise QueryFailedError(self.MESSAGE["INVALID_CLIENT_RECORD"], err=e) from e
        if repository_info is None:
            raise NotFoundError(self.MESSAGE["NO_CLIENT_FOR_CLIENT_KEY"])

        logger.debug("Client key resolved to client %s", repository_info.client_id)
        containers = self.fetch_containers_info(repository_info.client_id, options)
        return repository_info.with_containers(containers)

    def fetch_containers_info(self, client_id: str, options: RequestOptions) -> ContainersInfo:
        """
        Look up the container records of a client.

        Raises:
            QueryFailedError: If the table query was unsuccessful or a record
                could not be mapped
            NotFoundError: If neither container record exists
        """
        mov_key = f"{client_id}_{MediaType.MOVIE.value}"
        pic_key = f"{client_id}_{MediaType.PICTURE.value}"

        query = TableQuery(
            partition_key=self.settings.container_partition,
            conditions=[
                PropertyCondition(name="RowKey", value=mov_key),
                PropertyCondition(name="RowKey", value=pic_key),
            ],
            operator="or",
        )
        result = self.table_store.query(
            self.settings.table_name,
            query,
            options.merged_over(self.settings.default_options),
        )

        if not result.is_successful:
            raise QueryFailedError(
                self.MESSAGE["CONTAINER_QUERY_FAILED"],
                status_code=result.status_code,
                err=result.error,
            )

        if not result.entries:
            raise NotFoundError(self.MESSAGE["NO_CONTAINER_FOR_CLIENT_ID"])

        by_key = {entry.get("RowKey"): entry for entry in result.entries}
        try:
            return ContainersInfo(
                movie_container=self.map_container_info(by_key.get(mov_key)),
                picture_container=self.map_container_info(by_key.get(pic_key)),
            )
        except (KeyError, ValidationError) as e:
            raise QueryFailedError(self.MESSAGE["INVALID_CONTAINER_RECORD"], err=e) from e

    @staticmethod
    def map_repository_info(entity: Optional[Dict[str, Any]]) -> Optional[RepositoryInfo]:
        """Convert a client table record into a RepositoryInfo."""
        if not entity:
            return None
        return RepositoryInfo(
            client_id=str(entity["RowKey"]),
            client_key=str(entity["ClientKey"]),
            client_name=entity.get("ClientName", ""),
        )

    @staticmethod
    def map_container_info(entity: Optional[Dict[str, Any]]) -> Optional[ContainerInfo]:
        """Convert a container table record into a ContainerInfo."""
        if not entity:
            return None
        return ContainerInfo(
            container_id=entity["RowKey"],
            media_store=entity["MediaStore"],
            cota=entity.get("Cota") or 0,
            current_size=entity.get("CurrentSize") or 0,
        )
