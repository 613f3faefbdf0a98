import pytest
from fastapi.testclient import TestClient

from ticketdesk.core.config import Settings
from ticketdesk.db.init_db import create_tables
from ticketdesk.db.session import Database
from ticketdesk.main import create_app
from ticketdesk.repositories.tickets import TicketRepository


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'tickets.db'}",
        ENV="test",
        SEED_DEMO_DATA=False,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def database(settings):
    db = Database(settings.database_url)
    create_tables(db.engine)
    yield db
    db.dispose()


@pytest.fixture
def app(settings, database):
    return create_app(settings, database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def repo(session):
    return TicketRepository(session)


def ticket_payload(**overrides):
    body = {
        "fullname": "Ada Lovelace",
        "telephone": "+1 5551234",
        "brand": "Tesla",
        "comment": "noise from dashboard",
    }
    body.update(overrides)
    return body
