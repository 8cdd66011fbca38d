"""Domain errors raised by the services and mapped to HTTP responses by the endpoints."""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE = "INVALID_DATE"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    SLUG_GENERATION_FAILED = "SLUG_GENERATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when caller-supplied data is malformed or missing."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidDateError(ValidationError):
    code = ErrorCode.INVALID_DATE

    def __init__(self, value: str) -> None:
        super().__init__("Invalid date format", field="date")
        self.value = value


class UnsupportedMediaTypeError(ValidationError):
    code = ErrorCode.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, content_type: Optional[str]) -> None:
        super().__init__("Only JPEG, PNG, and WebP images are allowed", field="image")
        self.content_type = content_type


class PayloadTooLargeError(ValidationError):
    code = ErrorCode.PAYLOAD_TOO_LARGE

    def __init__(self, size: int, limit: int) -> None:
        super().__init__("Image size must not exceed 5MB", field="image")
        self.size = size
        self.limit = limit


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, slug: str) -> None:
        super().__init__(f"Event with slug '{slug}' not found")
        self.slug = slug


class VersionConflictError(DomainError):
    """Raised when another writer updated the event since it was read."""

    code = ErrorCode.VERSION_CONFLICT

    def __init__(self, event_id: str, expected_version: int) -> None:
        super().__init__("Event was modified by another request, reload and try again")
        self.event_id = event_id
        self.expected_version = expected_version


class DuplicateBookingError(DomainError):
    code = ErrorCode.DUPLICATE_BOOKING

    def __init__(self) -> None:
        super().__init__("You have already booked this event")


class UploadFailedError(DomainError):
    """Raised when the media host rejects or times out an upload."""

    code = ErrorCode.UPLOAD_FAILED

    def __init__(self, detail: str) -> None:
        super().__init__("Image upload failed")
        self.detail = detail


class DeleteFailedError(DomainError):
    code = ErrorCode.DELETE_FAILED

    def __init__(self, asset_id: str, detail: str) -> None:
        super().__init__("Image delete failed")
        self.asset_id = asset_id
        self.detail = detail


class SlugGenerationFailedError(DomainError):
    code = ErrorCode.SLUG_GENERATION_FAILED

    def __init__(self, base_slug: str, attempts: int) -> None:
        super().__init__("Failed to generate a unique slug")
        self.base_slug = base_slug
        self.attempts = attempts


class StoreError(DomainError):
    """Raised for unexpected database failures.

    ``outcome_unknown`` is set when the write may or may not have been applied
    (timeouts, dropped connections), so callers must re-read before retrying.
    """

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, detail: str, outcome_unknown: bool = False) -> None:
        super().__init__("An unexpected error occurred")
        self.detail = detail
        self.outcome_unknown = outcome_unknown
