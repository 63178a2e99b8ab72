"""
Typed failures raised by the triage core

Every failure path surfaces one of these to the caller; nothing is retried
or swallowed inside the core.
"""
from typing import Optional


class TriageError(Exception):
    """Base class for all triage core failures"""

    def __init__(self, message: str, ticket_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.ticket_id = ticket_id

    def __str__(self) -> str:
        return self.message


class ValidationError(TriageError):
    """Caller-supplied data violates a ticket invariant"""


class InvalidTransition(TriageError):
    """Requested status change is illegal for the ticket's current state"""


class UpstreamUnavailable(TriageError):
    """Ticket store or engineer directory unreachable or returned a bad shape"""


class NotFound(TriageError):
    """Ticket id is absent from the store"""


class PermissionDenied(TriageError):
    """Acting role may not perform the requested operation"""
