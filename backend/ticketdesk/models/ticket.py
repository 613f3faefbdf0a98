from sqlalchemy import String, Integer, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ticketdesk.models.base import Base

STATUS_INCOMPLETE = "incomplete"
STATUS_COMPLETED = "completed"
TICKET_STATUSES = (STATUS_INCOMPLETE, STATUS_COMPLETED)

class Ticket(Base):
    __tablename__ = "tickets"
    # AUTOINCREMENT on SQLite so ids of deleted tickets are never handed out again
    __table_args__ = (
        CheckConstraint("status IN ('incomplete', 'completed')", name="ck_tickets_status"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fullname: Mapped[str] = mapped_column(String(255))
    telephone: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    brand: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(32), default=STATUS_INCOMPLETE)  # incomplete, completed
    comment: Mapped[str] = mapped_column(Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fullname": self.fullname,
            "telephone": self.telephone,
            "brand": self.brand,
            "status": self.status,
            "comment": self.comment,
        }
