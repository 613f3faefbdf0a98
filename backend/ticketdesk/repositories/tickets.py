from typing import Any, Dict, List, Mapping, Optional
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ticketdesk.core.errors import ConstraintViolation, StorageError
from ticketdesk.models.ticket import Ticket, STATUS_COMPLETED, STATUS_INCOMPLETE

logger = logging.getLogger(__name__)

_CREATE_FIELDS = ("fullname", "telephone", "brand", "status", "comment")

class TicketRepository:
    """Typed CRUD over the tickets table.

    The only code that issues queries against the record store. Every method is a
    single statement followed by a commit; NotFound comes back as None/False.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Ticket]:
        try:
            return list(self.db.scalars(select(Ticket).order_by(Ticket.id)).all())
        except SQLAlchemyError as e:
            raise self._storage_error("list tickets", e)

    def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        try:
            return self.db.get(Ticket, ticket_id)
        except SQLAlchemyError as e:
            raise self._storage_error(f"load ticket {ticket_id}", e)

    def create(self, fields: Mapping[str, Any]) -> Ticket:
        ticket = Ticket(**{k: fields[k] for k in _CREATE_FIELDS})
        self.db.add(ticket)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # telephone is the only unique column besides the generated id
            raise ConstraintViolation(f"telephone already exists: {fields['telephone']!r}") from e
        except SQLAlchemyError as e:
            raise self._storage_error("create ticket", e)
        self.db.refresh(ticket)
        return ticket

    def delete_by_id(self, ticket_id: int) -> bool:
        try:
            result = self.db.execute(delete(Ticket).where(Ticket.id == ticket_id))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error(f"delete ticket {ticket_id}", e)
        return result.rowcount > 0

    def update_status(self, ticket_id: int, status: str) -> Optional[Ticket]:
        try:
            result = self.db.execute(
                update(Ticket).where(Ticket.id == ticket_id).values(status=status)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error(f"update ticket {ticket_id}", e)
        if result.rowcount == 0:
            return None
        ticket = self.get_by_id(ticket_id)
        if ticket is not None:
            self.db.refresh(ticket)
        return ticket

    def count_by_status(self) -> Dict[str, int]:
        try:
            rows = self.db.execute(select(Ticket.status, func.count()).group_by(Ticket.status)).all()
        except SQLAlchemyError as e:
            raise self._storage_error("count tickets", e)
        counts = {status: n for status, n in rows}
        completed = counts.get(STATUS_COMPLETED, 0)
        incomplete = counts.get(STATUS_INCOMPLETE, 0)
        return {"total": completed + incomplete, "completed": completed, "incomplete": incomplete}

    def _storage_error(self, action: str, exc: SQLAlchemyError) -> StorageError:
        self.db.rollback()
        logger.exception("Storage failure while trying to %s", action)
        err = StorageError(f"Failed to {action}")
        err.__cause__ = exc
        return err
