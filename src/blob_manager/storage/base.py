"""Base protocols for table and blob storage backends."""

from typing import BinaryIO, Protocol

from ..models import DownloadResult, RequestOptions, UploadResult
from ..storage_models import ContainerState, QueryResult, TableQuery


class TableStore(Protocol):
    """
    Protocol for table storage implementations.

    Query failures are reported in the result, not raised, so the caller can
    surface the backend status code.
    """

    def query(self, table: str, query: TableQuery, options: RequestOptions) -> QueryResult:
        """
        Run a filtered query against one table partition.

        Args:
            table: Table name
            query: Partition and property filter
            options: Per-request options

        Returns:
            QueryResult with matching entities and success flag
        """
        ...


class BlobStore(Protocol):
    """
    Protocol for blob storage implementations.

    All methods raise BackendError when the service reports a failure.
    """

    def container_state(self, container: str, options: RequestOptions) -> ContainerState:
        """
        Report whether a container exists and its lease state.

        Args:
            container: Container name
            options: Per-request options

        Returns:
            ContainerState for the container
        """
        ...

    def upload(
        self,
        container: str,
        blob_name: str,
        stream: BinaryIO,
        length: int,
        options: RequestOptions,
    ) -> UploadResult:
        """
        Write a stream to a blob, overwriting any existing one.

        Args:
            container: Container name
            blob_name: Blob name
            stream: Readable byte source
            length: Number of bytes to read from the stream
            options: Per-request options

        Returns:
            UploadResult with blob metadata
        """
        ...

    def download(
        self,
        container: str,
        blob_name: str,
        sink: BinaryIO,
        options: RequestOptions,
    ) -> DownloadResult:
        """
        Write a blob's content into a writable sink.

        Args:
            container: Container name
            blob_name: Blob name
            sink: Writable byte sink
            options: Per-request options

        Returns:
            DownloadResult with the number of bytes written
        """
        ...
