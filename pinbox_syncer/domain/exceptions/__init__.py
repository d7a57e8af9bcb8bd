from pinbox_syncer.domain.exceptions.domain_exceptions import (
    AuthError,
    ContentFetchError,
    ContentUnavailableError,
    DomainException,
    FolderExistsError,
    NoteNotFoundError,
    RemoteAPIError,
    RetryExhaustedError,
    VaultError,
)

__all__ = [
    "AuthError",
    "ContentFetchError",
    "ContentUnavailableError",
    "DomainException",
    "FolderExistsError",
    "NoteNotFoundError",
    "RemoteAPIError",
    "RetryExhaustedError",
    "VaultError",
]
