"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class InvalidTripRequest(DomainError):
    """Raised when trip preferences are semantically invalid."""


class NoFeasibleItinerary(DomainError):
    """Raised when no day of the trip could be scheduled at all."""

    def __init__(self, message: str, *, days: int = 0):
        self.days = days
        super().__init__(message)


class AdvisorError(DomainError):
    """The reasoning oracle failed or answered with an unusable choice."""
