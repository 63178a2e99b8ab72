"""
Workflow Engine

The single authority for changing a ticket's status and the fields coupled
to it (reason, assignee, council notes).

State machine:
    Pending -> Accepted | Rejected | Spam | UnderReview

Every target state is terminal here. Each operation reads the ticket, checks
the transition, and performs at most one store write; `accept` additionally
reads the engineer roster before writing. Writes are last-writer-wins at the
store boundary.
"""
import asyncio
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Optional, Union

from civic_triage.errors import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from civic_triage.models.schemas import (
    CurrentUser,
    IssueType,
    Role,
    Severity,
    Ticket,
    TicketStatus,
    parse_enum,
    utcnow,
)
from civic_triage.repositories.base_repository import TicketStore
from civic_triage.services.assignment import AssignmentCoordinator
from civic_triage.services.ticket_cache import TicketCache
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)


# Roles allowed to issue each operation
PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    "submit": frozenset({Role.CITIZEN, Role.ENGINEER}),
    "accept": frozenset({Role.ENGINEER, Role.COUNCIL}),
    "reject": frozenset({Role.ENGINEER, Role.COUNCIL}),
    "mark_spam": frozenset({Role.ENGINEER, Role.COUNCIL}),
    "mark_under_review": frozenset({Role.COUNCIL}),
    "delete": frozenset({Role.ENGINEER}),
}


def _require_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text


class WorkflowEngine:
    """
    Ticket state machine with role checks.

    Args:
        store: Ticket persistence boundary
        assignment: Roster checks for `accept` (skipped when None)
        cache: Dashboard cache kept current after each successful write
        clock: Source of creation timestamps
    """

    def __init__(
        self,
        store: TicketStore,
        assignment: Optional[AssignmentCoordinator] = None,
        cache: Optional[TicketCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.assignment = assignment
        self.cache = cache
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _authorize(operation: str, actor: Optional[CurrentUser]) -> None:
        if actor is None:
            return
        if actor.role not in PERMISSIONS[operation]:
            raise PermissionDenied(f"{actor.role.value} role may not {operation.replace('_', ' ')} tickets")

    async def _load_pending(self, ticket_id: str, operation: str) -> Ticket:
        ticket = await self.store.get(ticket_id)
        if ticket is None:
            missing = NotFound(f"Ticket {ticket_id} not found", ticket_id=ticket_id)
            raise InvalidTransition(
                f"Cannot {operation.replace('_', ' ')} ticket {ticket_id}: ticket not found",
                ticket_id=ticket_id,
            ) from missing
        if ticket.status != TicketStatus.PENDING:
            raise InvalidTransition(
                f"Cannot {operation.replace('_', ' ')} ticket {ticket_id}: status is {ticket.status.value}",
                ticket_id=ticket_id,
            )
        return ticket

    async def _cache_put(self, ticket: Ticket) -> None:
        if self.cache is None:
            return
        # The store write has happened; the cache follows it even if the caller is cancelled
        await asyncio.shield(self.cache.put(ticket))

    async def _apply(
        self,
        ticket: Ticket,
        operation: str,
        actor: Optional[CurrentUser],
        **changes,
    ) -> Ticket:
        updated = ticket.with_changes(**changes)
        try:
            stored = await self.store.update(updated)
        except NotFound as exc:
            raise InvalidTransition(
                f"Cannot {operation.replace('_', ' ')} ticket {ticket.id}: ticket not found",
                ticket_id=ticket.id,
            ) from exc

        await self._cache_put(stored)

        logger.info(
            "Ticket %s: %s -> %s (%s)",
            ticket.id,
            ticket.status.value,
            stored.status.value,
            actor.role.value if actor else "system",
        )
        return stored

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def submit(
        self,
        type: Union[IssueType, str],
        severity: Union[Severity, str],
        location: str,
        description: str,
        reporter_id: str,
        image_ref: Optional[str] = None,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        actor: Optional[CurrentUser] = None,
    ) -> Ticket:
        """
        Create a new Pending ticket.

        Raises:
            ValidationError: Unknown type/severity or empty reporter id
            PermissionDenied: Actor may not submit, or a citizen files for someone else
        """
        self._authorize("submit", actor)

        issue_type = parse_enum(IssueType, type, "issue type")
        issue_severity = parse_enum(Severity, severity, "severity")
        reporter = _require_text(reporter_id, "reporter id")

        if actor is not None and actor.role == Role.CITIZEN and actor.id != reporter:
            raise PermissionDenied("Citizens may only submit tickets as themselves")

        ticket = Ticket(
            type=issue_type,
            severity=issue_severity,
            location=(location or "").strip(),
            description=(description or "").strip(),
            reporter_id=reporter,
            created_at=self._clock(),
            status=TicketStatus.PENDING,
            image_ref=image_ref or None,
            latitude=latitude,
            longitude=longitude,
        )

        ticket_id = await self.store.create(ticket)
        created = ticket.with_changes(id=ticket_id)
        await self._cache_put(created)

        logger.info("Ticket %s submitted by %s (%s, %s)", ticket_id, reporter, issue_type.value, issue_severity.value)
        return created

    async def get(self, ticket_id: str) -> Ticket:
        """Fetch a ticket; NotFound when absent."""
        ticket = await self.store.get(ticket_id)
        if ticket is None:
            raise NotFound(f"Ticket {ticket_id} not found", ticket_id=ticket_id)
        return ticket

    async def accept(
        self,
        ticket_id: str,
        reason: str,
        engineer_name: str,
        notes: Optional[str] = None,
        *,
        actor: Optional[CurrentUser] = None,
    ) -> Ticket:
        """
        Accept a Pending ticket and assign it to an engineer.

        When roster enforcement is on, the engineer directory is read before
        the store write; if that read fails nothing is written.

        Raises:
            ValidationError: Missing reason/engineer, or engineer not on roster
            InvalidTransition: Ticket missing or not Pending
            UpstreamUnavailable: Store or directory unreachable
        """
        self._authorize("accept", actor)
        reason_text = _require_text(reason, "reason")
        assignee = _require_text(engineer_name, "engineer name")

        ticket = await self._load_pending(ticket_id, "accept")

        if self.assignment is not None and self.assignment.enforce_roster:
            assignee = await self.assignment.resolve_assignee(assignee)

        changes = {
            "status": TicketStatus.ACCEPTED,
            "reason": reason_text,
            "assigned_to": assignee,
        }
        if notes is not None and notes.strip():
            changes["council_notes"] = notes.strip()

        return await self._apply(ticket, "accept", actor, **changes)

    async def reject(
        self,
        ticket_id: str,
        reason: str,
        *,
        actor: Optional[CurrentUser] = None,
    ) -> Ticket:
        """Reject a Pending ticket with a justification."""
        self._authorize("reject", actor)
        reason_text = _require_text(reason, "reason")

        ticket = await self._load_pending(ticket_id, "reject")
        return await self._apply(
            ticket, "reject", actor,
            status=TicketStatus.REJECTED,
            reason=reason_text,
        )

    async def mark_spam(
        self,
        ticket_id: str,
        reason: Optional[str] = None,
        *,
        actor: Optional[CurrentUser] = None,
    ) -> Ticket:
        """
        Mark a Pending ticket as spam.

        No reason is required; one is recorded only when supplied.
        """
        self._authorize("mark_spam", actor)

        ticket = await self._load_pending(ticket_id, "mark_spam")
        changes = {"status": TicketStatus.SPAM}
        if reason is not None and reason.strip():
            changes["reason"] = reason.strip()
        return await self._apply(ticket, "mark_spam", actor, **changes)

    async def mark_under_review(
        self,
        ticket_id: str,
        engineer_name: Optional[str] = None,
        notes: Optional[str] = None,
        *,
        actor: Optional[CurrentUser] = None,
    ) -> Ticket:
        """
        Move a Pending ticket to UnderReview (council hand-off to engineering).

        The engineer, when named, is checked against the roster like `accept`
        and kept as `referred_to`; notes become the council instructions.
        """
        self._authorize("mark_under_review", actor)
        referred = (engineer_name or "").strip() or None

        ticket = await self._load_pending(ticket_id, "mark_under_review")

        if referred is not None and self.assignment is not None and self.assignment.enforce_roster:
            referred = await self.assignment.resolve_assignee(referred)

        changes = {"status": TicketStatus.UNDER_REVIEW}
        if referred is not None:
            changes["referred_to"] = referred
        if notes is not None and notes.strip():
            changes["council_notes"] = notes.strip()

        return await self._apply(ticket, "mark_under_review", actor, **changes)

    async def delete(
        self,
        ticket_id: str,
        *,
        actor: Optional[CurrentUser] = None,
    ) -> None:
        """
        Hard-delete a ticket regardless of status.

        Idempotent: deleting an absent id succeeds without side effects.
        """
        self._authorize("delete", actor)

        try:
            await self.store.delete(ticket_id)
        except NotFound:
            logger.debug("Ticket %s already absent", ticket_id)

        if self.cache is not None:
            await asyncio.shield(self.cache.discard(ticket_id))

        logger.info("Ticket %s deleted (%s)", ticket_id, actor.role.value if actor else "system")
