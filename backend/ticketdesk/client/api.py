from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class TicketApiError(Exception):
    """A ticket API call failed; status_code is None when no response came back."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TicketsApiClient:
    """Async adapter for the /tickets HTTP surface.

    The caller owns the httpx.AsyncClient (base URL, transport, lifetime).
    """

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @classmethod
    def from_base_url(cls, base_url: str | None = None, timeout: float = 10.0) -> "TicketsApiClient":
        """Build a client with its own httpx.AsyncClient; defaults to API_BASE_URL."""
        if base_url is None:
            from ticketdesk.core.config import settings
            base_url = settings.api_base_url
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            res = await self.http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Ticket API transport failure on %s %s: %s", method, path, e)
            raise TicketApiError(f"{method} {path} failed: {e}") from e
        if res.is_error:
            try:
                body = res.json()
                detail = body.get("detail") if isinstance(body, dict) else body
            except ValueError:
                detail = res.text
            logger.error("Ticket API HTTP %s on %s %s :: %s", res.status_code, method, path, detail)
            raise TicketApiError(f"{method} {path} returned {res.status_code}", status_code=res.status_code, detail=detail)
        return res

    async def get_tickets(self) -> list[dict[str, Any]]:
        res = await self._request("GET", "/tickets")
        return res.json()

    async def get_ticket(self, ticket_id: int) -> dict[str, Any]:
        res = await self._request("GET", f"/tickets/{ticket_id}")
        return res.json()

    async def get_stats(self) -> dict[str, int]:
        res = await self._request("GET", "/tickets/stats")
        return res.json()

    async def create_ticket(self, data: dict[str, Any]) -> dict[str, Any]:
        payload = {k: data.get(k) for k in ("fullname", "telephone", "brand", "comment")}
        res = await self._request("POST", "/tickets", json=payload)
        return res.json()

    async def delete_ticket(self, ticket_id: int) -> None:
        await self._request("DELETE", f"/tickets/{ticket_id}")

    async def update_ticket_status(self, ticket_id: int, status: str | None) -> dict[str, Any]:
        body = {"status": status} if status is not None else {}
        res = await self._request("PATCH", f"/tickets/{ticket_id}", json=body)
        return res.json()
