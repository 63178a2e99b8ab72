"""
Ticket Repository for the Supabase `tickets` table

Features:
- TicketStore implementation over the Supabase REST client
- Row <-> Ticket mapping (legacy status spellings and row shapes normalized on read)
- Blocking client calls moved off the event loop with asyncio.to_thread
- Every transport failure surfaces as UpstreamUnavailable
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from civic_triage.config import get_settings
from civic_triage.errors import NotFound, TriageError, UpstreamUnavailable
from civic_triage.models.schemas import (
    IssueType,
    Severity,
    Ticket,
    TicketFilter,
    TicketStatus,
    parse_enum,
)
from civic_triage.repositories.base_repository import TicketStore
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

# Status spellings written to the remote table
STATUS_TO_STORE = {
    TicketStatus.PENDING: "Pending",
    TicketStatus.ACCEPTED: "Accepted",
    TicketStatus.REJECTED: "Rejected",
    TicketStatus.SPAM: "Spam",
    TicketStatus.UNDER_REVIEW: "UNDER_REVIEW",
}

# Placeholders for decided rows that older clients stored incompletely
NO_REASON_RECORDED = "No reason recorded"
UNASSIGNED = "Unassigned"


class TicketRepository(TicketStore):
    """Repository for tickets table operations"""

    def __init__(self, supabase_client=None, table_name: Optional[str] = None) -> None:
        """
        Initialize repository with Supabase client

        Args:
            supabase_client: Supabase client instance (uses default if None)
            table_name: Table override (defaults to settings.tickets_table)
        """
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            self.client = create_client(
                settings.supabase_url,
                settings.supabase_api_key
            )
        else:
            self.client = supabase_client

        self.table_name = table_name or settings.tickets_table
        logger.info("TicketRepository initialized for table: %s", self.table_name)

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    @staticmethod
    def _serialize(ticket: Ticket) -> Dict[str, Any]:
        """Convert a Ticket into a tickets-table row (id excluded)."""
        return {
            "issue_type": ticket.type.value,
            "severity": ticket.severity.value,
            "status": STATUS_TO_STORE[ticket.status],
            "location": ticket.location,
            "latitude": ticket.latitude,
            "longitude": ticket.longitude,
            "description": ticket.description,
            "reporter_id": ticket.reporter_id,
            "created_at": ticket.created_at.isoformat(),
            "engineer_notes": ticket.reason,
            "assigned_engineer_name": ticket.assigned_to or ticket.referred_to,
            "council_notes": ticket.council_notes,
            "image_url": ticket.image_ref,
        }

    @staticmethod
    def _normalize_legacy(row: Dict[str, Any], status: TicketStatus) -> Dict[str, Optional[str]]:
        """
        Reason and engineer fields for rows written by older clients.

        Assignment used to set the engineer together with UNDER_REVIEW, and
        engineer decisions could be stored without notes. The engineer is kept
        as `assigned_to` only for Accepted rows and as `referred_to` otherwise;
        decided rows without notes get a placeholder reason.
        """
        reason = (row.get("engineer_notes") or "").strip() or None
        engineer = (row.get("assigned_engineer_name") or "").strip() or None

        if status in (TicketStatus.ACCEPTED, TicketStatus.REJECTED) and reason is None:
            logger.warning("Ticket %s is %s without notes", row.get("id"), status.value)
            reason = NO_REASON_RECORDED

        if status == TicketStatus.ACCEPTED:
            if engineer is None:
                logger.warning("Ticket %s is Accepted without an engineer", row.get("id"))
            return {"reason": reason, "assigned_to": engineer or UNASSIGNED, "referred_to": None}
        return {"reason": reason, "assigned_to": None, "referred_to": engineer}

    @classmethod
    def _deserialize(cls, row: Dict[str, Any]) -> Ticket:
        """Convert a Supabase row into a Ticket."""
        try:
            status = TicketStatus.from_store(row.get("status"))
            return Ticket(
                id=str(row["id"]),
                type=parse_enum(IssueType, row.get("issue_type") or "Other", "issue type"),
                severity=parse_enum(Severity, row.get("severity") or "Low", "severity"),
                location=row.get("location") or "",
                description=row.get("description") or "",
                reporter_id=row.get("reporter_id") or "",
                created_at=row["created_at"],
                status=status,
                council_notes=row.get("council_notes") or None,
                image_ref=row.get("image_url") or None,
                latitude=row.get("latitude"),
                longitude=row.get("longitude"),
                **cls._normalize_legacy(row, status),
            )
        except (KeyError, TypeError, ValueError, TriageError) as exc:
            logger.error("Malformed ticket row %s: %s", row.get("id"), exc)
            raise UpstreamUnavailable(
                f"Ticket store returned an unexpected row: {exc}",
                ticket_id=str(row.get("id")) if row.get("id") is not None else None,
            ) from exc

    # ------------------------------------------------------------------
    # Sync operations
    # ------------------------------------------------------------------
    def create_sync(self, ticket: Ticket) -> str:
        """Insert a ticket row and return the generated id."""
        try:
            response = self.client.table(self.table_name) \
                .insert(self._serialize(ticket)) \
                .execute()

            if not response.data:
                raise UpstreamUnavailable("Supabase insert returned no data")

            ticket_id = str(response.data[0]["id"])
            logger.info("Created ticket: %s", ticket_id)
            return ticket_id

        except TriageError:
            raise
        except Exception as exc:
            logger.error("Failed to create ticket: %s", exc)
            raise UpstreamUnavailable(f"Failed to create ticket: {exc}") from exc

    def get_sync(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by id, None when absent."""
        try:
            response = self.client.table(self.table_name) \
                .select("*") \
                .eq("id", ticket_id) \
                .execute()

            if not response.data:
                return None

            return self._deserialize(response.data[0])

        except TriageError:
            raise
        except Exception as exc:
            logger.error("Failed to get ticket %s: %s", ticket_id, exc)
            raise UpstreamUnavailable(f"Failed to get ticket: {exc}", ticket_id=ticket_id) from exc

    def list_sync(self, ticket_filter: Optional[TicketFilter] = None) -> List[Ticket]:
        """List tickets newest first with optional filters."""
        try:
            query = self.client.table(self.table_name).select("*")

            if ticket_filter is not None:
                if ticket_filter.reporter_id is not None:
                    query = query.eq("reporter_id", ticket_filter.reporter_id)
                if ticket_filter.statuses is not None:
                    query = query.in_("status", [STATUS_TO_STORE[s] for s in ticket_filter.statuses])
                if ticket_filter.assigned_to is not None:
                    query = query.eq("assigned_engineer_name", ticket_filter.assigned_to)

            query = query.order("created_at", desc=True)

            if ticket_filter is not None and ticket_filter.limit is not None:
                offset = ticket_filter.offset
                query = query.range(offset, offset + ticket_filter.limit - 1)

            response = query.execute()
            rows = response.data or []
            return [self._deserialize(row) for row in rows]

        except TriageError:
            raise
        except Exception as exc:
            logger.error("Failed to list tickets: %s", exc)
            raise UpstreamUnavailable(f"Failed to list tickets: {exc}") from exc

    def update_sync(self, ticket: Ticket) -> Ticket:
        """Overwrite a ticket row; NotFound when no row matched."""
        try:
            payload = self._serialize(ticket)
            # Creation fields are immutable
            payload.pop("reporter_id")
            payload.pop("created_at")

            response = self.client.table(self.table_name) \
                .update(payload) \
                .eq("id", ticket.id) \
                .execute()

            if not response.data:
                raise NotFound(f"Ticket {ticket.id} not found", ticket_id=ticket.id)

            result = self._deserialize(response.data[0])
            logger.info("Updated ticket: %s", result.id)
            return result

        except TriageError:
            raise
        except Exception as exc:
            logger.error("Failed to update ticket %s: %s", ticket.id, exc)
            raise UpstreamUnavailable(f"Failed to update ticket: {exc}", ticket_id=ticket.id) from exc

    def delete_sync(self, ticket_id: str) -> None:
        """Delete a ticket row; deleting an absent id succeeds."""
        try:
            self.client.table(self.table_name) \
                .delete() \
                .eq("id", ticket_id) \
                .execute()

            logger.info("Deleted ticket: %s", ticket_id)

        except Exception as exc:
            logger.error("Failed to delete ticket %s: %s", ticket_id, exc)
            raise UpstreamUnavailable(f"Failed to delete ticket: {exc}", ticket_id=ticket_id) from exc

    # ------------------------------------------------------------------
    # TicketStore (async)
    # ------------------------------------------------------------------
    async def create(self, ticket: Ticket) -> str:
        return await asyncio.to_thread(self.create_sync, ticket)

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        return await asyncio.to_thread(self.get_sync, ticket_id)

    async def list(self, ticket_filter: Optional[TicketFilter] = None) -> List[Ticket]:
        return await asyncio.to_thread(self.list_sync, ticket_filter)

    async def update(self, ticket: Ticket) -> Ticket:
        return await asyncio.to_thread(self.update_sync, ticket)

    async def delete(self, ticket_id: str) -> None:
        await asyncio.to_thread(self.delete_sync, ticket_id)
