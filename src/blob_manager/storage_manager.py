"""Upload and download of client media blobs.

Every transfer goes through the same stages, stopping at the first failure:

    media type -> repository lookup -> container slot -> (quota) ->
    container state -> transfer
"""

import logging
import os
from typing import Any, BinaryIO, Optional, Union

from .client_manager import ClientManager
from .errors import (
    BackendError,
    BlobManagerError,
    ContainerExistsCheckError,
    ContainerNotFoundError,
    ContainerUnderLeaseError,
    InvalidMediaTypeError,
    InvalidOptionsError,
    QuotaExceededError,
    RepositoryUnavailableError,
    UploadFailedError,
)
from .models import (
    ContainerInfo,
    DownloadResult,
    MediaType,
    OperationResult,
    RequestOptions,
    UploadResult,
)
from .options import Callback, complete, normalize_args
from .storage.base import BlobStore
from .storage_models import ContainerState

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Transfers media blobs to and from a client's containers.

    Both collaborators are injected: the blob store for transfers and the
    client manager for repository resolution.
    """

    MediaTypes = MediaType

    MESSAGE = {
        "GET_CLIENT_REPO_FAILED": "Could not retrieve the repository for the given clientKey.",
        "INVALID_MEDIA_TYPE": "Invalid media type. See StorageManager.MediaTypes for the options.",
        "MEDIA_TYPE_CONTAINER_NOT_FOUND": "Could not find the container for the given mediaType.",
        "NO_COTA": "Data quota exceeded for the container.",
        "MEDIA_TYPE_CONTAINER_EXISTS_CHECK_ERROR": (
            "Could not find the container in the blob service for the given mediaType."
        ),
        "MEDIA_TYPE_CONTAINER_UNDER_LEASE": (
            "The container for the given mediaType is leased. Try again later."
        ),
        "UPLOAD_FAILED": "Upload failed.",
    }

    def __init__(self, client_key: str, blob_store: BlobStore, client_manager: ClientManager):
        """
        Initialize storage manager.

        Args:
            client_key: Client access key
            blob_store: Backend used for container checks and transfers
            client_manager: Resolver for the client's repository
        """
        self.client_key = client_key
        self.blob_store = blob_store
        self.client_manager = client_manager

    def upload(
        self,
        media_type: Union[MediaType, str],
        file_name: str,
        stream: BinaryIO,
        stream_length: int,
        options: Any = None,
        callback: Optional[Callback] = None,
    ) -> OperationResult:
        """
        Upload a stream into the client's container for a media type.

        Args:
            media_type: MediaType or its value ("mov", "pic")
            file_name: Blob name to create or overwrite
            stream: Readable byte source
            stream_length: Number of bytes to upload
            options: RequestOptions or mapping; a callable here is taken as the callback
            callback: Called with ``(error, UploadResult)``

        Returns:
            OperationResult with an ErrorDescriptor or the UploadResult
        """
        try:
            request_options, callback = normalize_args(options, callback)
        except InvalidOptionsError as e:
            logger.warning("Upload of %s rejected: %s", file_name, e.message)
            return complete(e.callback, e.to_descriptor())
        try:
            result = self._upload(media_type, file_name, stream, stream_length, request_options)
        except BlobManagerError as e:
            logger.warning("Upload of %s failed: %s", file_name, e.message)
            return complete(callback, e.to_descriptor())
        return complete(callback, None, result)

    def get(
        self,
        blob_name: str,
        write_stream: BinaryIO,
        media_type: Union[MediaType, str],
        options: Any = None,
        callback: Optional[Callback] = None,
    ) -> OperationResult:
        """
        Download a blob from the client's container for a media type.

        Args:
            blob_name: Blob to read
            write_stream: Writable sink receiving the content
            media_type: MediaType or its value ("mov", "pic")
            options: RequestOptions or mapping; a callable here is taken as the callback
            callback: Called with ``(error, DownloadResult)``

        Returns:
            OperationResult with an ErrorDescriptor or the DownloadResult
        """
        try:
            request_options, callback = normalize_args(options, callback)
        except InvalidOptionsError as e:
            logger.warning("Download of %s rejected: %s", blob_name, e.message)
            return complete(e.callback, e.to_descriptor())
        try:
            result = self._get(blob_name, write_stream, media_type, request_options)
        except BlobManagerError as e:
            logger.warning("Download of %s failed: %s", blob_name, e.message)
            return complete(callback, e.to_descriptor())
        return complete(callback, None, result)

    def ensure_container_state(self, container: str, options: RequestOptions) -> ContainerState:
        """
        Check that a container exists and is not leased by someone else.

        Raises:
            ContainerExistsCheckError: If the blob backend failed
            ContainerNotFoundError: If the container does not exist
            ContainerUnderLeaseError: If the container is leased
        """
        try:
            state = self.blob_store.container_state(container, options)
        except BackendError as e:
            raise ContainerExistsCheckError(
                self.MESSAGE["MEDIA_TYPE_CONTAINER_EXISTS_CHECK_ERROR"],
                status_code=e.status_code,
                err=e.err or e,
            ) from e

        if not state.exists:
            raise ContainerNotFoundError(self.MESSAGE["MEDIA_TYPE_CONTAINER_NOT_FOUND"])

        if state.is_leased:
            raise ContainerUnderLeaseError(self.MESSAGE["MEDIA_TYPE_CONTAINER_UNDER_LEASE"])

        return state

    @staticmethod
    def get_stream_length(stream: BinaryIO) -> int:
        """
        Number of bytes left in a stream from its current position.

        Seekable streams are measured and left at their original position;
        otherwise the size of the underlying file is used.

        Raises:
            ValueError: If the length cannot be determined
        """
        if hasattr(stream, "seekable") and stream.seekable():
            position = stream.tell()
            end = stream.seek(0, os.SEEK_END)
            stream.seek(position)
            return end - position

        try:
            return os.fstat(stream.fileno()).st_size
        except (AttributeError, OSError) as e:
            raise ValueError("Cannot determine the length of a non-seekable stream") from e

    def _upload(
        self,
        media_type: Union[MediaType, str],
        file_name: str,
        stream: BinaryIO,
        stream_length: int,
        options: RequestOptions,
    ) -> UploadResult:
        options = self._with_defaults(options)
        container_info = self._select_container(self._coerce_media_type(media_type), options)

        # TODO: replace with real accounting against current_size once quota rules exist
        if container_info.cota > 0:
            raise QuotaExceededError(self.MESSAGE["NO_COTA"])

        self.ensure_container_state(container_info.media_store, options)

        logger.debug("Uploading %s (%d bytes) to %s", file_name, stream_length, container_info.media_store)
        try:
            result = self.blob_store.upload(
                container_info.media_store, file_name, stream, stream_length, options
            )
        except BackendError as e:
            raise UploadFailedError(
                self.MESSAGE["UPLOAD_FAILED"],
                status_code=e.status_code,
                err=e.err or e,
            ) from e

        logger.info("Uploaded %s to %s", file_name, container_info.media_store)
        return result

    def _get(
        self,
        blob_name: str,
        write_stream: BinaryIO,
        media_type: Union[MediaType, str],
        options: RequestOptions,
    ) -> DownloadResult:
        options = self._with_defaults(options)
        container_info = self._select_container(self._coerce_media_type(media_type), options)
        self.ensure_container_state(container_info.media_store, options)

        logger.debug("Downloading %s from %s", blob_name, container_info.media_store)
        result = self.blob_store.download(
            container_info.media_store, blob_name, write_stream, options
        )
        logger.info("Downloaded %s (%d bytes) from %s", blob_name, result.size, container_info.media_store)
        return result

    def _with_defaults(self, options: RequestOptions) -> RequestOptions:
        """Fill unset options from the configured defaults for blob calls."""
        return options.merged_over(self.client_manager.settings.default_options)

    def _coerce_media_type(self, media_type: Union[MediaType, str]) -> MediaType:
        try:
            return MediaType(media_type)
        except ValueError:
            raise InvalidMediaTypeError(self.MESSAGE["INVALID_MEDIA_TYPE"]) from None

    def _select_container(self, media_type: MediaType, options: RequestOptions) -> ContainerInfo:
        """Resolve the repository and pick the container slot for a media type."""
        try:
            repository_info = self.client_manager.fetch_repository_info(options)
        except BlobManagerError as e:
            raise RepositoryUnavailableError(
                self.MESSAGE["GET_CLIENT_REPO_FAILED"],
                status_code=e.status_code,
                err=e.to_descriptor(),
            ) from e

        container_info = repository_info.container_for(media_type)
        if container_info is None:
            raise ContainerNotFoundError(self.MESSAGE["MEDIA_TYPE_CONTAINER_NOT_FOUND"])
        return container_info
