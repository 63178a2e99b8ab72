"""
Pydantic models for the Civic Triage core

Contains the ticket entity, the enumerations that constrain it, the read-only
engineer projection, the acting user, and the per-role projection returned to
dashboards.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Type, TypeVar

from pydantic import BaseModel, Field, ConfigDict, model_validator

from civic_triage.errors import ValidationError


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any, label: str) -> E:
    """
    Resolve an enum member from a member or a case-insensitive string.

    Args:
        enum_cls: Target enum class
        value: Enum member or string value
        label: Field name used in the error message

    Returns:
        Matching enum member

    Raises:
        ValidationError: If the value is not one of the allowed members
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == key or member.name.lower() == key:
                return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"Invalid {label} '{value}'. Allowed: {allowed}")


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================

class IssueType(str, Enum):
    """Infrastructure issue categories"""
    ROAD = "Road"
    UTILITIES = "Utilities"
    FACILITIES = "Facilities"
    ENVIRONMENT = "Environment"
    OTHER = "Other"


class Severity(str, Enum):
    """Ticket severity, ordered Low < Medium < High"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class TicketStatus(str, Enum):
    """Ticket lifecycle states"""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    SPAM = "Spam"
    UNDER_REVIEW = "UnderReview"

    @classmethod
    def from_store(cls, value: Optional[str]) -> "TicketStatus":
        """
        Lenient parse of a status read back from the remote store.

        Accepts any casing, "under_review"/"under review" spellings and the
        legacy "completed" label. Unknown or missing values read as Pending.
        """
        if not value:
            return cls.PENDING
        key = value.strip().lower().replace("_", "").replace(" ", "")
        if key == "completed":
            return cls.ACCEPTED
        for member in cls:
            if member.value.lower() == key:
                return member
        return cls.PENDING


class Role(str, Enum):
    """Acting party capability sets"""
    CITIZEN = "Citizen"
    ENGINEER = "Engineer"
    COUNCIL = "Council"


class EngineerTab(str, Enum):
    """Engineer dashboard tabs"""
    PENDING_REVIEW = "PendingReview"
    REJECTED = "Rejected"
    SPAM = "Spam"
    ACCEPTED = "Accepted"


class CouncilTab(str, Enum):
    """Council dashboard tabs"""
    TOTAL_REPORTS = "TotalReports"
    COMPLETED = "Completed"
    PENDING = "Pending"
    SPAM = "Spam"


class SearchField(str, Enum):
    """Ticket text fields a search query can target"""
    LOCATION = "Location"
    DESCRIPTION = "Description"


# ============================================================================
# Entities
# ============================================================================

class Ticket(BaseModel):
    """
    A reported infrastructure issue and its triage state.

    Tickets are frozen values. State changes go through `with_changes`, which
    re-validates the whole record so status, reason and assignee always move
    together.

    Attributes:
        id: Store-assigned identifier (None until created)
        type: Issue category
        severity: Low / Medium / High
        location: Free-text or geocoded location
        description: Free-text description
        reporter_id: Citizen who filed the ticket
        created_at: Creation timestamp (UTC)
        status: Lifecycle state
        reason: Justification captured on accept/reject
        assigned_to: Engineer name, set only when accepted
        referred_to: Engineer a council handed the ticket to for review
        council_notes: Instructions attached at assignment time
        image_ref: Opaque photo reference
        latitude: Optional latitude from the reporting device
        longitude: Optional longitude from the reporting device
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Store-assigned identifier")
    type: IssueType = Field(..., description="Issue category")
    severity: Severity = Field(..., description="Issue severity")
    location: str = Field("", description="Location text")
    description: str = Field("", description="Issue description")
    reporter_id: str = Field(..., min_length=1, description="Reporting citizen id")
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    status: TicketStatus = Field(TicketStatus.PENDING, description="Lifecycle state")
    reason: Optional[str] = Field(None, description="Accept/reject justification")
    assigned_to: Optional[str] = Field(None, description="Assigned engineer name")
    referred_to: Optional[str] = Field(None, description="Engineer the ticket was referred to")
    council_notes: Optional[str] = Field(None, description="Council instructions")
    image_ref: Optional[str] = Field(None, description="Photo reference")
    latitude: Optional[float] = Field(None, description="Latitude")
    longitude: Optional[float] = Field(None, description="Longitude")

    @model_validator(mode="after")
    def check_status_fields(self) -> "Ticket":
        """Reason and assignee must agree with the status"""
        if self.status in (TicketStatus.ACCEPTED, TicketStatus.REJECTED):
            if not (self.reason or "").strip():
                raise ValueError(f"reason is required when status is {self.status.value}")
        has_assignee = bool((self.assigned_to or "").strip())
        if has_assignee != (self.status == TicketStatus.ACCEPTED):
            raise ValueError("assigned_to must be set if and only if status is Accepted")
        return self

    def with_changes(self, **changes: Any) -> "Ticket":
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return self.__class__(**data)


class Engineer(BaseModel):
    """Read-only engineer entry from the external directory"""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    email: str = ""
    total_assigned: int = 0
    high_priority_assigned: int = 0


class CurrentUser(BaseModel):
    """The acting user as supplied by the authentication layer"""
    id: str = Field(..., min_length=1)
    role: Role
    display_name: str = ""


class TicketFilter(BaseModel):
    """Store-side selection criteria for `TicketStore.list`"""
    reporter_id: Optional[str] = None
    statuses: Optional[List[TicketStatus]] = None
    assigned_to: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)

    def matches(self, ticket: Ticket) -> bool:
        """Client-side evaluation used by in-memory stores and caches"""
        if self.reporter_id is not None and ticket.reporter_id != self.reporter_id:
            return False
        if self.statuses is not None and ticket.status not in self.statuses:
            return False
        if self.assigned_to is not None and ticket.assigned_to != self.assigned_to:
            return False
        return True


# ============================================================================
# Projections
# ============================================================================

class RoleProjection(BaseModel):
    """
    Computed dashboard view for one role over one ticket set.

    `tabs` is empty for citizens, whose tickets are listed in `tickets`.
    """
    role: Role
    tabs: Dict[str, List[Ticket]] = Field(default_factory=dict)
    counts: Dict[str, int] = Field(default_factory=dict)
    stats: Dict[str, Any] = Field(default_factory=dict)
    tickets: List[Ticket] = Field(default_factory=list)

    def tab(self, name: str) -> List[Ticket]:
        """Tickets of one tab; unknown tab names raise ValidationError"""
        key = name.value if isinstance(name, Enum) else name
        if key not in self.tabs:
            allowed = ", ".join(self.tabs) or "none"
            raise ValidationError(f"Unknown tab '{key}' for role {self.role.value}. Allowed: {allowed}")
        return self.tabs[key]


class ErrorResponse(BaseModel):
    """Error body returned by the HTTP adapter"""
    error: str
    message: str
    ticket_id: Optional[str] = None
