from pathlib import Path
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticketdesk.api.router import api_router
from ticketdesk.core.config import Settings, settings as default_settings
from ticketdesk.core.errors import ConstraintViolation, NotFoundError, TicketDeskError, ValidationError
from ticketdesk.core.logging import configure_logging
from ticketdesk.db.init_db import create_tables, seed_demo_data
from ticketdesk.db.session import Database
from ticketdesk.services.validation import flatten_errors

logger = logging.getLogger(__name__)

BACKEND_ROOT = Path(__file__).resolve().parents[1]

NOT_FOUND = "Not found"
INTERNAL_ERROR = "Internal server error"
DUPLICATE_TELEPHONE = "A ticket with this telephone number already exists"

def _run_migrations(database_url: str) -> bool:
    """Apply Alembic migrations up to head. Returns False when alembic.ini is missing."""
    from alembic import command
    from alembic.config import Config

    alembic_ini = BACKEND_ROOT / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return False
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    cfg.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    # ConfigParser interpolates %, and percent-encoded passwords are common in URLs
    cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    logger.info("Applying Alembic migrations -> head ...")
    command.upgrade(cfg, "head")
    logger.info("Migrations applied successfully")
    return True

async def _request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and bad enum values are client errors with field detail, not 422s
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": flatten_errors(exc.errors())})

async def _ticketdesk_error_handler(request: Request, exc: TicketDeskError):
    """Map the error taxonomy to exactly one status; 5xx bodies never carry internal messages."""
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.errors})
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": NOT_FOUND})
    if isinstance(exc, ConstraintViolation):
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": DUPLICATE_TELEPHONE})
    # StorageError details were already logged by the repository
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": INTERNAL_ERROR})

def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0")
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)

    origins = settings.cors_origins
    logger.info("Resolved CORS origins: %s", origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(TicketDeskError, _ticketdesk_error_handler)
    app.include_router(api_router)

    @app.on_event("startup")
    def startup():
        db: Database = app.state.database
        if settings.is_prod and settings.auto_apply_migrations:
            try:
                _run_migrations(db.url)
            except Exception:  # pragma: no cover
                # Do not kill the app on migration failure, just log; can be retried manually.
                logger.exception("Migration failed")
        else:
            create_tables(db.engine)
        if settings.seed_demo_data:
            seed_demo_data(db)

    @app.on_event("shutdown")
    def shutdown():
        app.state.database.dispose()

    return app

app = create_app()
