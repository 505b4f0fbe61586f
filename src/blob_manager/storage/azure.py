"""Azure Table and Blob storage implementations."""

import logging
from typing import BinaryIO

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError
from azure.data.tables import EntityProperty, TableServiceClient
from azure.storage.blob import BlobServiceClient, ExponentialRetry

from ..errors import BackendError
from ..models import DownloadResult, RequestOptions, UploadResult
from ..storage_models import ContainerState, QueryResult, TableQuery

logger = logging.getLogger(__name__)


def _backend_error(exc: AzureError) -> BackendError:
    """Wrap an SDK exception, keeping its HTTP status when there is one."""
    status_code = getattr(exc, "status_code", None)
    return BackendError(str(exc), status_code=status_code, err=exc)


def _plain_entity(entity) -> dict:
    """Unwrap typed values (Edm.Int64 comes back as an EntityProperty)."""
    return {
        key: value.value if isinstance(value, EntityProperty) else value
        for key, value in entity.items()
    }


class AzureTableStore:
    """
    Azure Table Storage implementation.

    Retries use the SDK's exponential policy; nothing is retried here.
    """

    def __init__(self, connection_string: str, retry_total: int = 3):
        """
        Initialize Azure table store.

        Args:
            connection_string: Azure Storage connection string
            retry_total: Total retries allowed by the SDK retry policy
        """
        self.client = TableServiceClient.from_connection_string(
            connection_string,
            retry_total=retry_total,
        )

    def query(self, table: str, query: TableQuery, options: RequestOptions) -> QueryResult:
        """
        Query one partition of a table.

        Args:
            table: Table name
            query: Partition and property filter
            options: Per-request options

        Returns:
            QueryResult; unsuccessful with the service status on failure
        """
        query_filter, parameters = query.to_odata()
        table_client = self.client.get_table_client(table)
        logger.debug("Querying %s: %s", table, query_filter)

        try:
            entities = table_client.query_entities(
                query_filter,
                parameters=parameters,
                **options.to_sdk_kwargs(),
            )
            entries = [_plain_entity(entity) for entity in entities]
        except HttpResponseError as e:
            return QueryResult(is_successful=False, status_code=e.status_code, error=e)
        except AzureError as e:
            return QueryResult(is_successful=False, status_code=None, error=e)

        return QueryResult(entries=entries, is_successful=True, status_code=200)


class AzureBlobStore:
    """Azure Blob Storage implementation."""

    def __init__(self, connection_string: str, retry_total: int = 3):
        """
        Initialize Azure blob store.

        Args:
            connection_string: Azure Storage connection string
            retry_total: Total retries allowed by the SDK retry policy
        """
        self.client = BlobServiceClient.from_connection_string(
            connection_string,
            retry_policy=ExponentialRetry(retry_total=retry_total),
        )

    def container_state(self, container: str, options: RequestOptions) -> ContainerState:
        container_client = self.client.get_container_client(container)
        try:
            props = container_client.get_container_properties(**options.to_sdk_kwargs())
        except ResourceNotFoundError:
            return ContainerState(exists=False)
        except AzureError as e:
            raise _backend_error(e) from e

        return ContainerState(
            exists=True,
            lease_status=props.lease.status,
            lease_state=props.lease.state,
        )

    def upload(
        self,
        container: str,
        blob_name: str,
        stream: BinaryIO,
        length: int,
        options: RequestOptions,
    ) -> UploadResult:
        """
        Upload a stream as a block blob, overwriting any existing blob.

        Args:
            container: Container name
            blob_name: Blob name
            stream: Readable byte source
            length: Number of bytes to upload
            options: Per-request options

        Returns:
            UploadResult with etag and last-modified time
        """
        blob_client = self.client.get_blob_client(container=container, blob=blob_name)
        try:
            response = blob_client.upload_blob(
                stream,
                length=length,
                overwrite=True,
                **options.to_sdk_kwargs(),
            )
        except AzureError as e:
            raise _backend_error(e) from e

        last_modified = response.get("last_modified")
        return UploadResult(
            container=container,
            blob_name=blob_name,
            etag=response.get("etag"),
            last_modified=last_modified.isoformat() if last_modified else None,
        )

    def download(
        self,
        container: str,
        blob_name: str,
        sink: BinaryIO,
        options: RequestOptions,
    ) -> DownloadResult:
        """
        Download a blob into a writable sink.

        Args:
            container: Container name
            blob_name: Blob name
            sink: Writable byte sink
            options: Per-request options

        Returns:
            DownloadResult with the number of bytes written
        """
        blob_client = self.client.get_blob_client(container=container, blob=blob_name)
        try:
            downloader = blob_client.download_blob(**options.to_sdk_kwargs())
            size = downloader.readinto(sink)
        except AzureError as e:
            raise _backend_error(e) from e

        return DownloadResult(container=container, blob_name=blob_name, size=size)
