import logging

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from ticketdesk.db.session import Database
from ticketdesk.models import ticket  # noqa: F401
from ticketdesk.models.base import Base
from ticketdesk.models.ticket import Ticket

logger = logging.getLogger(__name__)

DEMO_TICKETS = [
    {
        "fullname": "Mario Rossi",
        "telephone": "+39 3450098878",
        "brand": "Mercedes",
        "status": "completed",
        "comment": "The user reported that he cannot log in into his profile because he lost his password. I helped him to create a new one",
    },
    {
        "fullname": "Franz Beckenbauer",
        "telephone": "+49 3450098878",
        "brand": "Volkswagen",
        "status": "completed",
        "comment": "The user reported that he cannot find his profile. I created a new one with Active Directory",
    },
    {
        "fullname": "Michail Kusnetsov",
        "telephone": "+7 3450098878",
        "brand": "BMW",
        "status": "completed",
        "comment": "The user reported that he cannot connect to the internet. I did a reset of the DNS with the ipconfig /flushdns command and then tested the connectivity with the ping command",
    },
    {
        "fullname": "Daniela Garcia Marquez",
        "telephone": "+52 3450098878",
        "brand": "Tesla",
        "status": "incomplete",
        "comment": "The user reported that she cannot log in to the manufacturer's CMS to download her payrolls. The problem is not resolved yet",
    },
]

def create_tables(engine: Engine):
    Base.metadata.create_all(bind=engine)

def seed_demo_data(database: Database) -> int:
    """Insert the demo tickets into an empty table. Returns how many rows were added."""
    db = database.session()
    try:
        existing = db.scalar(select(func.count()).select_from(Ticket))
        if existing:
            return 0
        db.add_all([Ticket(**row) for row in DEMO_TICKETS])
        db.commit()
        logger.info("Seeded %d demo tickets", len(DEMO_TICKETS))
        return len(DEMO_TICKETS)
    finally:
        db.close()
