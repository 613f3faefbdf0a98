from __future__ import annotations

from typing import Any, Iterable

from ticketdesk.client.api import TicketsApiClient
from ticketdesk.client.cache import Listener, QueryCache, QueryState, Subscription

TICKETS_KEY = "tickets"


class TicketQueries:
    """What a list or detail view uses to read and change tickets.

    All operations share the "tickets" key, so a write made from one view is
    picked up by every other view subscribed to the collection.
    """

    def __init__(self, api: TicketsApiClient, cache: QueryCache | None = None):
        self.api = api
        self.cache = cache or QueryCache()

    @property
    def state(self) -> QueryState:
        return self.cache.get_state(TICKETS_KEY)

    def subscribe(self, callback: Listener) -> Subscription:
        return self.cache.subscribe(TICKETS_KEY, callback)

    async def fetch_tickets(self) -> list[dict[str, Any]]:
        return await self.cache.fetch(TICKETS_KEY, self.api.get_tickets)

    async def create_ticket(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.cache.mutate(TICKETS_KEY, self.api.create_ticket, data)

    async def delete_ticket(self, ticket_id: int) -> None:
        await self.cache.mutate(TICKETS_KEY, self.api.delete_ticket, ticket_id)

    async def update_ticket_status(self, ticket_id: int, status: str) -> dict[str, Any]:
        return await self.cache.mutate(TICKETS_KEY, self.api.update_ticket_status, ticket_id, status)


def count_tickets(tickets: Iterable[dict[str, Any]]) -> int:
    return sum(1 for _ in tickets)


def count_completed(tickets: Iterable[dict[str, Any]]) -> int:
    return sum(1 for t in tickets if t.get("status") == "completed")


def count_incomplete(tickets: Iterable[dict[str, Any]]) -> int:
    return sum(1 for t in tickets if t.get("status") == "incomplete")
