"""Custom service layer errors."""


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when a business rule validation fails."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class DatesUnavailableError(ServiceError):
    """Raised when the requested car is already reserved for the dates."""


class HoldExpiredError(ServiceError):
    """Raised when a hold's deadline passed before payment was recorded."""


class ForbiddenError(ServiceError):
    """Raised when the requester does not own the booking."""


class InvalidTransitionError(ServiceError):
    """Raised when a booking cannot move from its current status."""
