"""Error taxonomy shared by the webhook, the job pipeline and the repositories."""

from __future__ import annotations

from contextlib import contextmanager
from enum import StrEnum
from typing import Iterator

from fastapi import status
from sqlalchemy import exc as sa_exc

__all__ = [
    "ErrorKind",
    "FailureReason",
    "AppError",
    "AuthError",
    "ValidationError",
    "UnsupportedFormatError",
    "NotFoundError",
    "DownloadError",
    "DownloadTimeoutError",
    "SizeLimitError",
    "ProcessingError",
    "StorageError",
    "ConfigurationError",
    "InternalError",
    "IllegalTransitionError",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
    "STATUS_BY_KIND",
    "status_for",
]


class ErrorKind(StrEnum):
    """Coarse error classes, one per HTTP outcome."""

    AUTH = "auth"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DOWNLOAD_TIMEOUT = "download_timeout"
    DOWNLOAD = "download"
    SIZE_LIMIT = "size_limit"
    PROCESSING = "processing"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class FailureReason(StrEnum):
    """Reasons recorded on a failed job."""

    ENTITY_NOT_FOUND = "EntityNotFound"
    DOWNLOAD_ERROR = "DownloadError"
    DOWNLOAD_TIMEOUT = "DownloadTimeout"
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    SIZE_LIMIT = "SizeLimitError"
    PROCESSING_ERROR = "ProcessingError"
    STORAGE_ERROR = "StorageError"
    INTERNAL_ERROR = "InternalError"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.AUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DOWNLOAD_TIMEOUT: status.HTTP_408_REQUEST_TIMEOUT,
    ErrorKind.DOWNLOAD: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.SIZE_LIMIT: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ErrorKind.PROCESSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Base class for application specific errors.

    Every subclass carries an :class:`ErrorKind` (used for the HTTP mapping)
    and a :class:`FailureReason` (recorded on the job when it fails).
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    failure_reason: FailureReason = FailureReason.INTERNAL_ERROR

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def describe(self) -> str:
        """Human readable cause stored on the failed job."""

        return f"{self.failure_reason.value}: {self.message}"


class AuthError(AppError):
    """Raised when the trigger signature is missing or wrong."""

    kind = ErrorKind.AUTH


class ValidationError(AppError):
    """Raised for bad headers, malformed bodies and missing fields."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, code: str = "Invalid") -> None:
        super().__init__(message)
        self.code = code


class UnsupportedFormatError(ValidationError):
    """Raised when downloaded bytes are not a recognised image container."""

    failure_reason = FailureReason.UNSUPPORTED_FORMAT

    def __init__(self, message: str = "Unrecognized image format") -> None:
        super().__init__(message, code="UnsupportedFormat")


class NotFoundError(AppError):
    """Raised when a record could not be located."""

    kind = ErrorKind.NOT_FOUND
    failure_reason = FailureReason.ENTITY_NOT_FOUND


class DownloadError(AppError):
    """Raised when the source image cannot be fetched."""

    kind = ErrorKind.DOWNLOAD
    failure_reason = FailureReason.DOWNLOAD_ERROR


class DownloadTimeoutError(DownloadError):
    """Raised when the source image is not fetched before the deadline."""

    kind = ErrorKind.DOWNLOAD_TIMEOUT
    failure_reason = FailureReason.DOWNLOAD_TIMEOUT


class SizeLimitError(AppError):
    """Raised when a payload or a downloaded image exceeds its cap."""

    kind = ErrorKind.SIZE_LIMIT
    failure_reason = FailureReason.SIZE_LIMIT


class ProcessingError(AppError):
    """Raised when an image cannot be decoded, resized or encoded."""

    kind = ErrorKind.PROCESSING
    failure_reason = FailureReason.PROCESSING_ERROR


class StorageError(AppError):
    """Raised when the object store rejects an operation."""

    kind = ErrorKind.STORAGE
    failure_reason = FailureReason.STORAGE_ERROR


class ConfigurationError(AppError):
    """Raised when required configuration is absent."""

    kind = ErrorKind.CONFIGURATION


class InternalError(AppError):
    """Wraps failures that fit no other kind."""


class IllegalTransitionError(RuntimeError):
    """Raised when a job status transition is not allowed."""


def status_for(exc: AppError) -> int:
    """Return the HTTP status code for ``exc``."""

    return STATUS_BY_KIND[exc.kind]


class DatabaseOperationError(InternalError):
    """Raised for unexpected database errors."""


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into :class:`DatabaseOperationError`."""

    try:
        yield
    except sa_exc.SQLAlchemyError as exc:
        prefix = f"{entity}: " if entity else ""
        raise DatabaseOperationError(f"{prefix}database operation failed") from exc
