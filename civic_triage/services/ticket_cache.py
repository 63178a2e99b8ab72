"""
In-memory ticket cache backing dashboard projections

Explicit component with its own lifecycle: load it from a store, let the
workflow engine keep it current, clear it on shutdown. Entries are whole
frozen Ticket values replaced under one lock, so a reader never observes a
status from one write paired with an assignee from another.
"""
import asyncio
from typing import Dict, List, Optional

from civic_triage.models.schemas import Ticket, TicketFilter
from civic_triage.repositories.base_repository import TicketStore
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)


class TicketCache:
    """Ticket snapshot kept in store order (newest first)"""

    def __init__(self) -> None:
        self._tickets: Dict[str, Ticket] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self, store: TicketStore) -> int:
        """Replace the cache contents with the store's current tickets."""
        tickets = await store.list()
        async with self._lock:
            self._tickets = {t.id: t for t in tickets if t.id is not None}
            self._loaded = True
        logger.info("Ticket cache loaded with %d tickets", len(self._tickets))
        return len(self._tickets)

    async def clear(self) -> None:
        async with self._lock:
            self._tickets = {}
            self._loaded = False

    async def put(self, ticket: Ticket) -> None:
        """Insert or replace one ticket. New ids go to the front."""
        async with self._lock:
            if ticket.id in self._tickets:
                self._tickets[ticket.id] = ticket
            else:
                self._tickets = {ticket.id: ticket, **self._tickets}

    async def discard(self, ticket_id: str) -> None:
        async with self._lock:
            self._tickets.pop(ticket_id, None)

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        async with self._lock:
            return self._tickets.get(ticket_id)

    async def snapshot(self, ticket_filter: Optional[TicketFilter] = None) -> List[Ticket]:
        """Copy of the cached tickets, optionally filtered, in cache order."""
        async with self._lock:
            tickets = list(self._tickets.values())
        if ticket_filter is not None:
            tickets = [t for t in tickets if ticket_filter.matches(t)]
        return tickets
