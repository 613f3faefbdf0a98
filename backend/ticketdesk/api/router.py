from fastapi import APIRouter

from ticketdesk.api.routes import health, tickets

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])  # GET /, POST /, GET|PATCH|DELETE /{id}
