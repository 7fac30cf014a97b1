"""
Error kinds raised by the booking, capacity and loyalty services.

All of them are logic errors reported synchronously to the caller; none are
retried inside the services. The HTTP layer maps each `code` to a status.
"""


class CommunityHubError(Exception):
    """Base class for every error the core services raise"""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(CommunityHubError):
    """Negative or zero quantities, discount above amount, malformed config"""

    code = "invalid_input"


class CapacityExceeded(CommunityHubError):
    """A reservation asked for more units than the resource has available"""

    code = "capacity_exceeded"

    def __init__(self, resource_id: str, requested: int, available: int):
        super().__init__(
            f"Resource '{resource_id}' has {available} unit(s) available, "
            f"{requested} requested"
        )
        self.resource_id = resource_id
        self.requested = requested
        self.available = available


class InvalidTransition(CommunityHubError):
    """Status edge not permitted from the booking's current status"""

    code = "invalid_transition"

    def __init__(self, booking_id: str, current: str, requested: str):
        super().__init__(
            f"Booking {booking_id} cannot move from '{current}' to '{requested}'"
        )
        self.booking_id = booking_id
        self.current = current
        self.requested = requested


class NotFound(CommunityHubError):
    """Unknown booking, resource or user"""

    code = "not_found"

    def __init__(self, kind: str, identifier):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier
