

class TicketingError(Exception):
    """
    Base exception for all domain-level errors
    inside the ticketing service.
    """


class ValidationError(TicketingError):
    """Raised for malformed input that passed schema validation."""


class NotFoundError(TicketingError):
    """Raised when an event, booking or user does not exist."""


class AuthenticationError(TicketingError):
    """Raised when a request carries no usable identity."""


class UnauthorizedError(TicketingError):
    """Raised when the actor does not own the resource or lacks the role."""


class InsufficientCapacityError(TicketingError):
    """Raised when an event cannot cover the requested seats."""

    def __init__(self, available: int):
        self.available = available
        super().__init__(
            f"Not enough seats available. Available: {available}"
        )


class AlreadyCancelledError(TicketingError):
    """Raised when a cancelled booking is cancelled again."""

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__("Booking already cancelled")


class ConflictError(TicketingError):
    """
    Raised when a ledger transaction could not be serialized
    after the bounded number of attempts.
    """


class DuplicateUserError(TicketingError):
    """Raised on signup when the mobile or email is already registered."""


class InvalidStateTransitionError(TicketingError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)
