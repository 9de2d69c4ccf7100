class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PreconditionError(DomainError):
    """Raised when an operation cannot start (missing identity, nothing to save, ...).

    Always raised before any storage call is made.
    """


class NotConfiguredError(PreconditionError):
    """Raised when a batch has no active attendance configuration."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StorageError(DomainError):
    """Raised when the storage layer fails or refuses a write.

    In-memory state is left untouched so the caller can retry.
    """
