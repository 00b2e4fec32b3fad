class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced member, exception or calculation does not exist."""


class InvalidStateError(DomainError):
    """Raised when an operation is not allowed in the entity's current state."""


class AttendanceFrozenError(InvalidStateError):
    """Raised when a write targets attendance that has already been frozen."""


class ConfigurationError(DomainError):
    """Raised when pay configuration is missing or incomplete."""
