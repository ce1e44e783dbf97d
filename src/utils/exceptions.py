"""Custom exception classes."""


class StoreError(Exception):
    """Base class for document store failures."""
    pass


class TransportUnavailable(StoreError):
    """Raised when the document store cannot be reached or read."""
    pass


class PersistenceFailure(StoreError):
    """Raised when a write was not confirmed by the document store."""
    pass


class Forbidden(Exception):
    """Raised when the admin passphrase is wrong."""
    pass


class RegistrationNotFoundError(Exception):
    """Raised when a registration ID doesn't exist."""
    pass


class EditLimitReachedError(Exception):
    """Raised when the single-edit policy refuses another change."""
    pass


class RegistrationClosedError(Exception):
    """Raised when the admission gate rejects a submission."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason
        self.message = message or reason


class ValidationError(Exception):
    """Raised when data fails validation."""
    pass
