"""Domain models for client repositories and request options.

Field names are snake_case; the camelCase aliases match the names used by
existing callers and by the JSON printed from the CLI.
"""

import math
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorDescriptor


class MediaType(str, Enum):
    """Media stored per client. The value is also the container row-key suffix."""
    MOVIE = "mov"
    PICTURE = "pic"


class RequestOptions(BaseModel):
    """
    Per-request options forwarded to the storage SDK.

    Unknown keys are kept in ``model_extra`` and passed through untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    timeout_interval_in_ms: Optional[float] = Field(default=None, alias="timeoutIntervalInMs")
    maximum_execution_time_in_ms: Optional[float] = Field(
        default=None, alias="maximumExecutionTimeInMs"
    )

    def to_sdk_kwargs(self) -> Dict[str, Any]:
        """
        Translate options into Azure SDK keyword arguments.

        ``timeout_interval_in_ms`` becomes the per-request connection/read
        timeout, ``maximum_execution_time_in_ms`` the operation ``timeout``.
        Both are converted to seconds; nothing is enforced locally.

        Returns:
            Keyword arguments for an SDK call
        """
        kwargs: Dict[str, Any] = dict(self.model_extra or {})
        if self.timeout_interval_in_ms is not None:
            seconds = self.timeout_interval_in_ms / 1000
            kwargs["connection_timeout"] = seconds
            kwargs["read_timeout"] = seconds
        if self.maximum_execution_time_in_ms is not None:
            kwargs["timeout"] = max(1, math.ceil(self.maximum_execution_time_in_ms / 1000))
        return kwargs

    def merged_over(self, defaults: Optional["RequestOptions"]) -> "RequestOptions":
        """Return these options with unset values filled from ``defaults``."""
        if defaults is None:
            return self
        data = defaults.model_dump(exclude_none=True)
        data.update(self.model_dump(exclude_none=True))
        return RequestOptions(**data)


class ContainerInfo(BaseModel):
    """Blob container assigned to one media type of a client."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    container_id: str = Field(alias="containerID")     # Row key, e.g. "123_mov"
    media_store: str = Field(alias="mediaStore")       # Blob container name
    cota: int = 0                                      # Quota
    current_size: int = Field(default=0, alias="currentSize")


class ContainersInfo(BaseModel):
    """Result of the container lookup; either slot may be absent."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    movie_container: Optional[ContainerInfo] = Field(default=None, alias="movieContainer")
    picture_container: Optional[ContainerInfo] = Field(default=None, alias="pictureContainer")


class RepositoryInfo(BaseModel):
    """Media repository of a client, resolved from its access key."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    client_id: str = Field(alias="clientID")
    client_key: str = Field(alias="clientKey")
    client_name: str = Field(alias="clientName")
    movie_container: Optional[ContainerInfo] = Field(default=None, alias="movieContainer")
    picture_container: Optional[ContainerInfo] = Field(default=None, alias="pictureContainer")

    def with_containers(self, containers: ContainersInfo) -> "RepositoryInfo":
        """Return a copy with the container descriptors merged in."""
        update = {}
        if containers.movie_container is not None:
            update["movie_container"] = containers.movie_container
        if containers.picture_container is not None:
            update["picture_container"] = containers.picture_container
        return self.model_copy(update=update)

    def container_for(self, media_type: MediaType) -> Optional[ContainerInfo]:
        """Select the container slot for a media type."""
        if media_type == MediaType.MOVIE:
            return self.movie_container
        return self.picture_container


class UploadResult(BaseModel):
    """Outcome of a successful upload."""
    container: str
    blob_name: str
    etag: Optional[str] = None
    last_modified: Optional[str] = None


class DownloadResult(BaseModel):
    """Outcome of a successful download."""
    container: str
    blob_name: str
    size: int


class OperationResult(NamedTuple):
    """``(error, result)`` pair returned by every public operation."""
    error: Optional[ErrorDescriptor]
    result: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None
