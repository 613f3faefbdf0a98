from typing import Iterator
import importlib.util
import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

def normalize_database_url(url: str) -> str:
    """Point bare Postgres URLs at the psycopg (v3) driver when psycopg2 is absent.

    Plain 'postgresql://' (or legacy 'postgres://') makes SQLAlchemy load psycopg2,
    while the declared dependency is psycopg[binary].
    """
    if not url:
        raise RuntimeError("DATABASE_URL must not be empty")
    if not url.startswith(("postgres://", "postgresql://")) or "+psycopg" in url:
        return url
    if importlib.util.find_spec("psycopg2") is not None:
        return url
    # Normalize legacy prefix 'postgres://' -> 'postgresql://'
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url.replace("postgresql://", "postgresql+psycopg://", 1)


class Database:
    """Store handle: one engine plus the session factory bound to it.

    Constructed explicitly (app factory, tests) and handed to whoever needs storage.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = normalize_database_url(url)
        connect_args = {}
        if self.url.startswith("sqlite"):
            # FastAPI runs sync endpoints in a threadpool; the connection is shared across it
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(self.url, echo=echo, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine)
        logger.info("Database engine created for dialect %s", self.engine.dialect.name)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
