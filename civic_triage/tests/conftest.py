"""
pytest configuration and shared fixtures
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from civic_triage.models.schemas import (
    CurrentUser,
    Engineer,
    IssueType,
    Role,
    Severity,
    Ticket,
    TicketStatus,
)
from civic_triage.repositories.base_repository import InMemoryTicketStore
from civic_triage.repositories.engineer_repository import InMemoryEngineerDirectory
from civic_triage.services.assignment import AssignmentCoordinator
from civic_triage.services.workflow import WorkflowEngine

FIXED_NOW = datetime(2025, 11, 16, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_ticket():
    """Factory for tickets with sensible defaults"""
    def _make(**overrides) -> Ticket:
        data = {
            "type": IssueType.ROAD,
            "severity": Severity.MEDIUM,
            "location": "Jalan Sultan Ismail, Kuala Lumpur",
            "description": "Large pothole on the main road",
            "reporter_id": "citizen-1",
            "created_at": FIXED_NOW,
            "status": TicketStatus.PENDING,
        }
        data.update(overrides)
        if data["status"] in (TicketStatus.ACCEPTED, TicketStatus.REJECTED):
            data.setdefault("reason", "triaged")
        if data["status"] == TicketStatus.ACCEPTED:
            data.setdefault("assigned_to", "Bob")
        return Ticket(**data)
    return _make


@pytest.fixture
def sample_tickets(make_ticket):
    """Eight tickets: 4 pending, 2 rejected (one spam), 2 accepted, newest first"""
    day = timedelta(days=1)
    return [
        make_ticket(id="TKT001", severity=Severity.HIGH, created_at=FIXED_NOW),
        make_ticket(id="TKT002", type=IssueType.ENVIRONMENT, severity=Severity.HIGH,
                    location="Taman Botani Perdana", description="Fallen tree blocking path",
                    created_at=FIXED_NOW - timedelta(hours=1)),
        make_ticket(id="TKT003", type=IssueType.UTILITIES, severity=Severity.LOW,
                    location="Bangsar", description="Burst water pipe",
                    created_at=FIXED_NOW - day),
        make_ticket(id="TKT004", type=IssueType.FACILITIES, status=TicketStatus.UNDER_REVIEW,
                    location="Bukit Bintang", description="Broken bench",
                    created_at=FIXED_NOW - 2 * day),
        make_ticket(id="TKT005", type=IssueType.OTHER, status=TicketStatus.SPAM,
                    location="Unknown", description="asdfgh", created_at=FIXED_NOW - 3 * day),
        make_ticket(id="TKT006", status=TicketStatus.REJECTED, reason="Duplicate report",
                    location="Jalan Ampang", description="Street light not working",
                    created_at=FIXED_NOW - 4 * day),
        make_ticket(id="TKT007", type=IssueType.UTILITIES, severity=Severity.HIGH,
                    status=TicketStatus.ACCEPTED, reason="Crew dispatched", assigned_to="Alice",
                    location="Taman Tun Dr Ismail", description="Manhole cover missing",
                    reporter_id="citizen-2", created_at=FIXED_NOW - 5 * day),
        make_ticket(id="TKT008", type=IssueType.ENVIRONMENT, severity=Severity.LOW,
                    status=TicketStatus.ACCEPTED, reason="Scheduled", assigned_to="Bob",
                    location="KLCC Park", description="Overflowing trash bin",
                    reporter_id="citizen-2", created_at=FIXED_NOW - 6 * day),
    ]


@pytest.fixture
def engineers():
    return [
        Engineer(id="eng-1", name="Alice", email="alice@council.gov", total_assigned=3, high_priority_assigned=1),
        Engineer(id="eng-2", name="Bob", email="bob@council.gov", total_assigned=1, high_priority_assigned=0),
    ]


@pytest.fixture
def store():
    return InMemoryTicketStore()


@pytest.fixture
def directory(engineers):
    return InMemoryEngineerDirectory(engineers)


@pytest.fixture
def assignment(directory):
    return AssignmentCoordinator(directory)


@pytest.fixture
def engine(store, assignment, fixed_now):
    return WorkflowEngine(store, assignment=assignment, clock=lambda: fixed_now)


@pytest.fixture
def citizen():
    return CurrentUser(id="citizen-1", role=Role.CITIZEN, display_name="Ahmad")


@pytest.fixture
def engineer_user():
    return CurrentUser(id="eng-2", role=Role.ENGINEER, display_name="Bob")


@pytest.fixture
def council_user():
    return CurrentUser(id="council-1", role=Role.COUNCIL, display_name="Council Desk")


@pytest.fixture
def mock_supabase():
    """Mocked Supabase client with chainable query builder"""
    client = MagicMock()
    client.table.return_value = client
    client.select.return_value = client
    client.insert.return_value = client
    client.update.return_value = client
    client.delete.return_value = client
    client.eq.return_value = client
    client.in_.return_value = client
    client.order.return_value = client
    client.range.return_value = client
    client.execute.return_value = MagicMock(data=[], count=0)
    return client
