from typing import Any, Dict, Optional


class TicketDeskError(Exception):
    """Base class for errors raised below the HTTP layer."""


class ValidationError(TicketDeskError):
    """Client input is malformed (HTTP 400)."""

    def __init__(self, errors: Dict[str, Any]):
        super().__init__("Invalid ticket input")
        self.errors = errors


class NotFoundError(TicketDeskError):
    """No row matches the requested id (HTTP 404)."""

    def __init__(self, ticket_id: Optional[int] = None):
        super().__init__(f"Ticket {ticket_id} not found" if ticket_id is not None else "Not found")
        self.ticket_id = ticket_id


class ConstraintViolation(TicketDeskError):
    """A store-enforced uniqueness rule was breached (HTTP 409)."""


class StorageError(TicketDeskError):
    """Anything else coming out of the durable layer (HTTP 500)."""
