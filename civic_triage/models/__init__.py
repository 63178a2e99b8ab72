"""
Pydantic models for Civic Triage
"""

from civic_triage.models.schemas import (
    # Enums
    IssueType,
    Severity,
    TicketStatus,
    Role,
    EngineerTab,
    CouncilTab,
    SearchField,

    # Entities
    Ticket,
    Engineer,
    CurrentUser,
    TicketFilter,

    # Projections
    RoleProjection,
    ErrorResponse,

    # Helpers
    parse_enum,
    utcnow,
)

__all__ = [
    # Enums
    "IssueType",
    "Severity",
    "TicketStatus",
    "Role",
    "EngineerTab",
    "CouncilTab",
    "SearchField",

    # Entities
    "Ticket",
    "Engineer",
    "CurrentUser",
    "TicketFilter",

    # Projections
    "RoleProjection",
    "ErrorResponse",

    # Helpers
    "parse_enum",
    "utcnow",
]
