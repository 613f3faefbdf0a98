from typing import Any, List, Optional
import logging

from fastapi import APIRouter, Body, Depends, Response, status

from ticketdesk.api.deps import get_ticket_repository, parse_ticket_id
from ticketdesk.core.errors import NotFoundError, ValidationError
from ticketdesk.models.ticket import STATUS_INCOMPLETE
from ticketdesk.repositories.tickets import TicketRepository
from ticketdesk.schemas.ticket import TicketOut, TicketStats, TicketStatusUpdate
from ticketdesk.services.validation import validate_ticket_input

logger = logging.getLogger(__name__)

# Repository errors (ConstraintViolation, StorageError) propagate to the handler in main.py
router = APIRouter()

@router.get("", response_model=List[TicketOut])
@router.get("/", response_model=List[TicketOut], include_in_schema=False)
def list_tickets(repo: TicketRepository = Depends(get_ticket_repository)):
    return repo.list_all()

@router.get("/stats", response_model=TicketStats)
def ticket_stats(repo: TicketRepository = Depends(get_ticket_repository)):
    """Dashboard counters: total, completed and incomplete tickets."""
    return repo.count_by_status()

@router.get("/{ticket_id}", response_model=TicketOut)
def get_ticket(ticket_id: int = Depends(parse_ticket_id), repo: TicketRepository = Depends(get_ticket_repository)):
    ticket = repo.get_by_id(ticket_id)
    if ticket is None:
        raise NotFoundError(ticket_id)
    return ticket

@router.post("", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=TicketOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_ticket(payload: Any = Body(None), repo: TicketRepository = Depends(get_ticket_repository)):
    """Create a ticket.

    The body is checked by the validation predicate before touching storage.
    Any client-supplied status is ignored: new tickets always start as incomplete.
    """
    result = validate_ticket_input(payload)
    if not result.ok:
        raise ValidationError(result.errors)
    fields = result.data.model_dump()
    fields["status"] = STATUS_INCOMPLETE
    ticket = repo.create(fields)
    logger.info("Created ticket %s", ticket.id)
    return ticket

@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_ticket(ticket_id: int = Depends(parse_ticket_id), repo: TicketRepository = Depends(get_ticket_repository)):
    if not repo.delete_by_id(ticket_id):
        raise NotFoundError(ticket_id)
    logger.info("Deleted ticket %s", ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.patch("/{ticket_id}", response_model=TicketOut)
def update_ticket_status(
    ticket_id: int = Depends(parse_ticket_id),
    body: Optional[TicketStatusUpdate] = None,
    repo: TicketRepository = Depends(get_ticket_repository),
):
    """Change the status of a ticket.

    Both directions (incomplete -> completed and back) are accepted.
    Without a status in the body the ticket is returned unchanged.
    """
    new_status = body.status if body else None
    if new_status is None:
        ticket = repo.get_by_id(ticket_id)
    else:
        ticket = repo.update_status(ticket_id, new_status.value)
    if ticket is None:
        raise NotFoundError(ticket_id)
    return ticket
