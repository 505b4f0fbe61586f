"""Error taxonomy for blob-manager.

Each failure site raises a typed exception from the ``BlobManagerError``
hierarchy. Public operations never let these escape: they are converted to an
``ErrorDescriptor`` at the API boundary and handed to the caller, so callers
branch on ``descriptor.kind`` (or ``status_code``) instead of catching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Kinds of failure surfaced to callers."""
    QUERY_FAILED = "query_failed"
    NOT_FOUND = "not_found"
    REPOSITORY_UNAVAILABLE = "repository_unavailable"
    INVALID_OPTIONS = "invalid_options"
    INVALID_MEDIA_TYPE = "invalid_media_type"
    CONTAINER_NOT_FOUND = "container_not_found"
    CONTAINER_UNDER_LEASE = "container_under_lease"
    CONTAINER_EXISTS_CHECK_ERROR = "container_exists_check_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPLOAD_FAILED = "upload_failed"
    BACKEND_ERROR = "backend_error"


@dataclass(frozen=True)
class ErrorDescriptor:
    """Structured error handed to callers instead of an exception."""
    kind: ErrorKind
    status_code: Optional[int]
    message: str
    err: Any = None


class BlobManagerError(RuntimeError):
    """Base class for all blob-manager errors."""

    kind: ErrorKind = ErrorKind.BACKEND_ERROR
    default_status: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None, err: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status
        self.err = err

    def to_descriptor(self) -> ErrorDescriptor:
        """Convert to the descriptor returned across the API boundary."""
        return ErrorDescriptor(
            kind=self.kind,
            status_code=self.status_code,
            message=self.message,
            err=self.err,
        )


# Table lookup errors
class QueryFailedError(BlobManagerError):
    """Table backend reported an unsuccessful query."""
    kind = ErrorKind.QUERY_FAILED


class NotFoundError(BlobManagerError):
    """No client or container record matched (404)."""
    kind = ErrorKind.NOT_FOUND
    default_status = 404


class RepositoryUnavailableError(BlobManagerError):
    """Repository descriptor could not be resolved for a transfer."""
    kind = ErrorKind.REPOSITORY_UNAVAILABLE


# Request errors
class InvalidOptionsError(BlobManagerError):
    """Request options could not be read (400).

    Carries the callback resolved from the call so the error can still be
    delivered to it.
    """
    kind = ErrorKind.INVALID_OPTIONS
    default_status = 400

    def __init__(self, message: str, callback: Any = None, err: Any = None):
        super().__init__(message, err=err)
        self.callback = callback


# Container validation errors
class InvalidMediaTypeError(BlobManagerError):
    """Media type is not one of the known MediaType values (400)."""
    kind = ErrorKind.INVALID_MEDIA_TYPE
    default_status = 400


class ContainerNotFoundError(BlobManagerError):
    """Container slot or blob container is missing (404)."""
    kind = ErrorKind.CONTAINER_NOT_FOUND
    default_status = 404


class ContainerUnderLeaseError(BlobManagerError):
    """Container lease is held by another party (403)."""
    kind = ErrorKind.CONTAINER_UNDER_LEASE
    default_status = 403


class ContainerExistsCheckError(BlobManagerError):
    """Blob backend failed while checking container state."""
    kind = ErrorKind.CONTAINER_EXISTS_CHECK_ERROR


class QuotaExceededError(BlobManagerError):
    """Container quota does not allow the upload (413)."""
    kind = ErrorKind.QUOTA_EXCEEDED
    default_status = 413


# Transfer errors
class UploadFailedError(BlobManagerError):
    """Blob backend rejected the upload."""
    kind = ErrorKind.UPLOAD_FAILED


class BackendError(BlobManagerError):
    """Raw failure reported by a storage backend."""
    kind = ErrorKind.BACKEND_ERROR


# Configuration errors
class ConfigError(RuntimeError):
    """Invalid or incomplete configuration.

    Raised at construction time, never from an operation.
    """
    pass
