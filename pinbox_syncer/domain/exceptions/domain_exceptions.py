"""Domain-specific exceptions.

These exceptions represent sync failures and storage errors. Callers of the
sync pipeline catch them at the edge and turn them into a single notice.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthError(DomainException):
    """Raised when the access token is missing, malformed or carries no user claim."""


class RemoteAPIError(DomainException):
    """Raised when the bookmark API answers with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int, details: dict | None = None) -> None:
        super().__init__(message, details)
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        return self.status_code in (408, 429) or self.status_code >= 500


class ContentFetchError(DomainException):
    """Raised when content cannot be fetched."""


class ContentUnavailableError(ContentFetchError):
    """Raised when a page can never yield content (removed, empty, hard HTTP error)."""

    def __init__(self, message: str, reason: str, details: dict | None = None) -> None:
        super().__init__(message, details)
        self.reason = reason


class VaultError(DomainException):
    """Raised when a vault storage operation fails."""


class FolderExistsError(VaultError):
    """Raised when creating a folder that is already present."""


class NoteNotFoundError(VaultError):
    """Raised when a requested note does not exist."""


class RetryExhaustedError(DomainException):
    """Raised when every attempt of a retried operation failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempts: {last_error}",
            {"operation": operation, "attempts": attempts},
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
