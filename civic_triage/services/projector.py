"""
Role View Projector

Partitions a ticket collection into the tabs each role's dashboard shows and
computes the counters above them. Read-only: tickets are never mutated and
never re-sorted, so every tab keeps the store's order.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from civic_triage.config import get_settings
from civic_triage.errors import ValidationError
from civic_triage.models.schemas import (
    CouncilTab,
    EngineerTab,
    Role,
    RoleProjection,
    Severity,
    Ticket,
    TicketStatus,
    parse_enum,
)

settings = get_settings()

NOT_AVAILABLE = "N/A"

# Status -> tab for the engineer dashboard (four disjoint tabs)
ENGINEER_TABS: Dict[TicketStatus, EngineerTab] = {
    TicketStatus.PENDING: EngineerTab.PENDING_REVIEW,
    TicketStatus.UNDER_REVIEW: EngineerTab.PENDING_REVIEW,
    TicketStatus.REJECTED: EngineerTab.REJECTED,
    TicketStatus.SPAM: EngineerTab.SPAM,
    TicketStatus.ACCEPTED: EngineerTab.ACCEPTED,
}

# Status -> tab for the council dashboard; TotalReports holds everything.
# Rejected and Spam share one tab here, unlike the engineer view.
COUNCIL_TABS: Dict[TicketStatus, CouncilTab] = {
    TicketStatus.ACCEPTED: CouncilTab.COMPLETED,
    TicketStatus.PENDING: CouncilTab.PENDING,
    TicketStatus.UNDER_REVIEW: CouncilTab.PENDING,
    TicketStatus.REJECTED: CouncilTab.SPAM,
    TicketStatus.SPAM: CouncilTab.SPAM,
}


def format_response_time(elapsed: Optional[timedelta]) -> str:
    """
    Render an average response time the way the council dashboard shows it.

    None -> "N/A", under one hour -> "< 1 hr", otherwise "<hours> hrs" with
    one decimal.
    """
    if elapsed is None:
        return NOT_AVAILABLE
    hours = elapsed.total_seconds() / 3600.0
    if hours < 1:
        return "< 1 hr"
    return f"{hours:.1f} hrs"


class RoleViewProjector:
    """Computes {tabs, counts, stats} per role"""

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self.tz = ZoneInfo(tz_name or settings.reporting_timezone)

    def _created_on(self, ticket: Ticket, day: date) -> bool:
        created = ticket.created_at
        if created.tzinfo is not None:
            created = created.astimezone(self.tz)
        return created.date() == day

    def project(
        self,
        role: Role,
        tickets: Iterable[Ticket],
        *,
        user_id: Optional[str] = None,
        today: Optional[date] = None,
        average_response_time: Optional[str] = None,
    ) -> RoleProjection:
        """
        Project a ticket set for one role.

        Args:
            role: Role enum or its name
            tickets: Tickets in store order
            user_id: Citizen id whose tickets are kept (citizen role only)
            today: Calendar day for "new today" (defaults to the local date)
            average_response_time: Pre-computed display string (council only)
        """
        role = parse_enum(Role, role, "role")
        ticket_list = list(tickets)

        if role == Role.CITIZEN:
            return self.project_citizen(ticket_list, user_id=user_id)
        if role == Role.ENGINEER:
            return self.project_engineer(ticket_list, today=today)
        if role == Role.COUNCIL:
            return self.project_council(ticket_list, average_response_time=average_response_time)
        raise ValidationError(f"Unsupported role {role}")

    def project_citizen(self, tickets: List[Ticket], user_id: Optional[str] = None) -> RoleProjection:
        own = tickets if user_id is None else [t for t in tickets if t.reporter_id == user_id]

        counts = {"total": len(own), "pending": 0, "accepted": 0, "rejected": 0}
        for ticket in own:
            if ticket.status in (TicketStatus.PENDING, TicketStatus.UNDER_REVIEW):
                counts["pending"] += 1
            elif ticket.status == TicketStatus.ACCEPTED:
                counts["accepted"] += 1
            else:
                counts["rejected"] += 1

        return RoleProjection(role=Role.CITIZEN, tickets=own, counts=counts, stats=dict(counts))

    def project_engineer(self, tickets: List[Ticket], today: Optional[date] = None) -> RoleProjection:
        tabs: Dict[str, List[Ticket]] = {tab.value: [] for tab in EngineerTab}
        for ticket in tickets:
            tabs[ENGINEER_TABS[ticket.status].value].append(ticket)

        day = today or datetime.now(self.tz).date()
        pending = tabs[EngineerTab.PENDING_REVIEW.value]
        stats = {
            "new_today": sum(1 for t in pending if self._created_on(t, day)),
            "this_week": len(pending),
            "high_priority": sum(1 for t in pending if t.severity == Severity.HIGH),
        }

        return RoleProjection(
            role=Role.ENGINEER,
            tabs=tabs,
            counts={name: len(items) for name, items in tabs.items()},
            stats=stats,
        )

    def project_council(
        self,
        tickets: List[Ticket],
        average_response_time: Optional[str] = None,
    ) -> RoleProjection:
        tabs: Dict[str, List[Ticket]] = {tab.value: [] for tab in CouncilTab}
        tabs[CouncilTab.TOTAL_REPORTS.value] = list(tickets)
        for ticket in tickets:
            tabs[COUNCIL_TABS[ticket.status].value].append(ticket)

        pending = tabs[CouncilTab.PENDING.value]
        stats = {
            "total_reports": len(tickets),
            "total_pending": len(pending),
            "high_priority_pending": sum(1 for t in pending if t.severity == Severity.HIGH),
            "average_response_time": average_response_time or NOT_AVAILABLE,
        }

        return RoleProjection(
            role=Role.COUNCIL,
            tabs=tabs,
            counts={name: len(items) for name, items in tabs.items()},
            stats=stats,
        )


def project_for_role(role: Role, tickets: Iterable[Ticket], **kwargs) -> RoleProjection:
    """Module-level shortcut for RoleViewProjector().project"""
    return RoleViewProjector().project(role, tickets, **kwargs)
