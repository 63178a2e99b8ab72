"""
Ticket Store contract

Defines the abstract persistence boundary the workflow engine and dashboards
depend on, plus an in-process implementation used for local runs and tests.
The core never assumes a transport: anything satisfying `TicketStore` can
back it.
"""

import asyncio
from abc import ABC, abstractmethod
from itertools import count
from typing import Dict, List, Optional

from civic_triage.errors import NotFound
from civic_triage.models.schemas import Ticket, TicketFilter
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)


class TicketStore(ABC):
    """
    Abstract ticket persistence boundary.

    Implementations are the sole arbiter of final ticket state: the core
    treats whatever they return as authoritative (last write wins).
    """

    @abstractmethod
    async def create(self, ticket: Ticket) -> str:
        """
        Persist a new ticket and return its store-assigned id.

        Raises:
            UpstreamUnavailable: If the store cannot be reached
        """

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[Ticket]:
        """Fetch one ticket, or None when the id is absent."""

    @abstractmethod
    async def list(self, ticket_filter: Optional[TicketFilter] = None) -> List[Ticket]:
        """
        Fetch tickets matching the filter in the store's native order
        (reverse-chronological by creation time).
        """

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """
        Overwrite a stored ticket with the given value.

        Raises:
            NotFound: If the ticket id is absent
        """

    @abstractmethod
    async def delete(self, ticket_id: str) -> None:
        """Remove a ticket permanently. Absent ids are a no-op."""


class InMemoryTicketStore(TicketStore):
    """
    Process-local ticket store.

    Issues `TKT`-prefixed sequential ids from a counter that only moves
    forward, so ids are never reused after deletion.
    """

    def __init__(self, tickets: Optional[List[Ticket]] = None, id_prefix: str = "TKT"):
        self._tickets: Dict[str, Ticket] = {}
        self._lock = asyncio.Lock()
        self._sequence = count(1)
        self._id_prefix = id_prefix

        for ticket in tickets or []:
            ticket_id = ticket.id or self._next_id()
            self._tickets[ticket_id] = ticket.with_changes(id=ticket_id)

        logger.info("InMemoryTicketStore initialized with %d tickets", len(self._tickets))

    def _next_id(self) -> str:
        while True:
            candidate = f"{self._id_prefix}{next(self._sequence):03d}"
            if candidate not in self._tickets:
                return candidate

    async def create(self, ticket: Ticket) -> str:
        async with self._lock:
            ticket_id = self._next_id()
            self._tickets[ticket_id] = ticket.with_changes(id=ticket_id)
        logger.debug("Created ticket %s", ticket_id)
        return ticket_id

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        async with self._lock:
            return self._tickets.get(ticket_id)

    async def list(self, ticket_filter: Optional[TicketFilter] = None) -> List[Ticket]:
        async with self._lock:
            tickets = list(self._tickets.values())

        # Newest first; stable for equal timestamps
        tickets.sort(key=lambda t: t.created_at, reverse=True)

        if ticket_filter is not None:
            tickets = [t for t in tickets if ticket_filter.matches(t)]
            end = None if ticket_filter.limit is None else ticket_filter.offset + ticket_filter.limit
            tickets = tickets[ticket_filter.offset:end]

        return tickets

    async def update(self, ticket: Ticket) -> Ticket:
        async with self._lock:
            if ticket.id is None or ticket.id not in self._tickets:
                raise NotFound(f"Ticket {ticket.id} not found", ticket_id=ticket.id)
            self._tickets[ticket.id] = ticket
        return ticket

    async def delete(self, ticket_id: str) -> None:
        async with self._lock:
            removed = self._tickets.pop(ticket_id, None)
        if removed is None:
            logger.debug("Delete of absent ticket %s ignored", ticket_id)
