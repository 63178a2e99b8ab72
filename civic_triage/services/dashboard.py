"""
Dashboard Service

Thin role caller shared by the citizen, engineer and council dashboards:
load the tickets a user may see, project them for the user's role, and
search within one tab.
"""
from datetime import date
from typing import Iterable, List, Optional, Union

from civic_triage.models.schemas import (
    CurrentUser,
    Role,
    RoleProjection,
    SearchField,
    Ticket,
    TicketFilter,
)
from civic_triage.repositories.base_repository import TicketStore
from civic_triage.services.projector import RoleViewProjector
from civic_triage.services.search import FilterValue, filter_tab
from civic_triage.services.ticket_cache import TicketCache
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)


class DashboardService:
    """Loads and projects tickets for the acting user"""

    def __init__(
        self,
        store: TicketStore,
        projector: Optional[RoleViewProjector] = None,
        cache: Optional[TicketCache] = None,
    ) -> None:
        self.store = store
        self.projector = projector or RoleViewProjector()
        self.cache = cache

    async def visible_tickets(self, user: CurrentUser) -> List[Ticket]:
        """Tickets the user's dashboard draws from, in store order."""
        ticket_filter = TicketFilter(reporter_id=user.id) if user.role == Role.CITIZEN else None

        if self.cache is not None and self.cache.loaded:
            return await self.cache.snapshot(ticket_filter)
        return await self.store.list(ticket_filter)

    async def load(
        self,
        user: CurrentUser,
        *,
        today: Optional[date] = None,
        average_response_time: Optional[str] = None,
    ) -> RoleProjection:
        """Project the user's visible tickets for their role."""
        tickets = await self.visible_tickets(user)
        projection = self.projector.project(
            user.role,
            tickets,
            user_id=user.id if user.role == Role.CITIZEN else None,
            today=today,
            average_response_time=average_response_time,
        )
        logger.debug("Projected %d tickets for %s %s", len(tickets), user.role.value, user.id)
        return projection

    async def search(
        self,
        user: CurrentUser,
        tab: Optional[str] = None,
        query: str = "",
        type_filter: FilterValue = None,
        severity_filter: FilterValue = None,
        search_fields: Optional[Iterable[Union[SearchField, str]]] = None,
    ) -> List[Ticket]:
        """
        Search within one tab of the user's dashboard.

        Citizens have no tabs; their own ticket list is searched and `tab`
        is ignored.

        Raises:
            ValidationError: If the tab does not exist for the user's role
        """
        projection = await self.load(user)
        if user.role == Role.CITIZEN:
            tab_tickets = projection.tickets
        else:
            # First tab (PendingReview / TotalReports) when none is named
            tab_tickets = projection.tab(tab or next(iter(projection.tabs)))
        return filter_tab(tab_tickets, query, type_filter, severity_filter, search_fields)
