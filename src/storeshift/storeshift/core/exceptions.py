class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or a required field is missing."""


class NotFoundError(DomainError):
    """Raised when the referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when an operation clashes with existing state (duplicates, terminal states)."""


class StorageError(DomainError):
    """Raised when the document store fails."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
