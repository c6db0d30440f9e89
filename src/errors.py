"""Domain errors raised by the lifecycle, review, and inquiry services."""


class BoardingBeeError(Exception):
    """Base exception for BoardingBee services."""


class NotFoundError(BoardingBeeError):
    """Referenced listing, review, or user does not exist."""


class ForbiddenError(BoardingBeeError):
    """Actor lacks ownership or role for the requested mutation."""


class ValidationError(BoardingBeeError):
    """Input failed a domain rule (rating range, price, required text)."""


class ConflictError(BoardingBeeError):
    """A uniqueness constraint rejected a concurrent duplicate write."""


class DependencyFailure(BoardingBeeError):
    """The notification gateway raised or reported failure."""
