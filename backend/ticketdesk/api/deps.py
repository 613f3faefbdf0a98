from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ticketdesk.core.errors import NotFoundError
from ticketdesk.db.session import get_db
from ticketdesk.repositories.tickets import TicketRepository

# Largest value the drivers bind as a 64-bit integer; anything wider overflows before the query runs
MAX_TICKET_ID = 2**63 - 1

def get_ticket_repository(db: Session = Depends(get_db)) -> TicketRepository:
    return TicketRepository(db)

def parse_ticket_id(ticket_id: str) -> int:
    """Path ids arrive as strings so a non-numeric id is a 400, not FastAPI's 422.

    Numeric ids the store can never have generated (zero, negative, wider than
    64 bits) are reported as missing rows without querying.
    """
    try:
        value = int(ticket_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ticket id")
    if value < 1 or value > MAX_TICKET_ID:
        raise NotFoundError(value)
    return value
