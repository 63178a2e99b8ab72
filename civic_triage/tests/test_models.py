"""Tests for ticket models and enum parsing"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from civic_triage.errors import ValidationError
from civic_triage.models.schemas import (
    CurrentUser,
    IssueType,
    Role,
    RoleProjection,
    Severity,
    Ticket,
    TicketFilter,
    TicketStatus,
    parse_enum,
)


class TestParseEnum:
    def test_member_passes_through(self):
        assert parse_enum(Severity, Severity.HIGH, "severity") is Severity.HIGH

    def test_case_insensitive_value(self):
        assert parse_enum(IssueType, "environment", "type") == IssueType.ENVIRONMENT

    def test_member_name_accepted(self):
        assert parse_enum(TicketStatus, "under_review", "status") == TicketStatus.UNDER_REVIEW

    def test_unknown_value_lists_allowed(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_enum(Severity, "Critical", "severity")
        assert "Low, Medium, High" in str(exc_info.value)


class TestSeverity:
    def test_severity_is_ordered(self):
        ranked = sorted([Severity.HIGH, Severity.LOW, Severity.MEDIUM], key=lambda s: s.rank)
        assert ranked == [Severity.LOW, Severity.MEDIUM, Severity.HIGH]


class TestStatusFromStore:
    @pytest.mark.parametrize("raw,expected", [
        ("Pending", TicketStatus.PENDING),
        ("ACCEPTED", TicketStatus.ACCEPTED),
        ("completed", TicketStatus.ACCEPTED),
        ("rejected", TicketStatus.REJECTED),
        ("Spam", TicketStatus.SPAM),
        ("UNDER_REVIEW", TicketStatus.UNDER_REVIEW),
        ("under review", TicketStatus.UNDER_REVIEW),
        ("", TicketStatus.PENDING),
        (None, TicketStatus.PENDING),
        ("archived", TicketStatus.PENDING),
    ])
    def test_lenient_parse(self, raw, expected):
        assert TicketStatus.from_store(raw) == expected


class TestTicketInvariants:
    """Status-coupled fields are validated together"""

    def test_accepted_requires_reason(self, make_ticket):
        with pytest.raises(PydanticValidationError):
            make_ticket(status=TicketStatus.ACCEPTED, reason="", assigned_to="Bob")

    def test_accepted_requires_assignee(self, make_ticket):
        with pytest.raises(PydanticValidationError):
            make_ticket(status=TicketStatus.ACCEPTED, reason="ok", assigned_to="")

    def test_assignee_only_when_accepted(self, make_ticket):
        with pytest.raises(PydanticValidationError):
            make_ticket(status=TicketStatus.PENDING, assigned_to="Bob")

    def test_rejected_requires_reason(self, make_ticket):
        with pytest.raises(PydanticValidationError):
            make_ticket(status=TicketStatus.REJECTED, reason=" ")

    def test_spam_without_reason_is_valid(self, make_ticket):
        ticket = make_ticket(status=TicketStatus.SPAM)
        assert ticket.reason is None

    def test_reporter_required(self, make_ticket):
        with pytest.raises(PydanticValidationError):
            make_ticket(reporter_id="")

    def test_with_changes_revalidates(self, make_ticket):
        ticket = make_ticket(id="TKT001")
        with pytest.raises(PydanticValidationError):
            ticket.with_changes(status=TicketStatus.ACCEPTED, reason="ok")

    def test_with_changes_returns_new_value(self, make_ticket):
        ticket = make_ticket(id="TKT001")
        accepted = ticket.with_changes(status=TicketStatus.ACCEPTED, reason="ok", assigned_to="Bob")
        assert ticket.status == TicketStatus.PENDING
        assert accepted.status == TicketStatus.ACCEPTED
        assert accepted.id == ticket.id
        assert accepted.created_at == ticket.created_at

    def test_ticket_is_frozen(self, make_ticket):
        ticket = make_ticket(id="TKT001")
        with pytest.raises(PydanticValidationError):
            ticket.id = "TKT002"


class TestTicketFilter:
    def test_matches_reporter_and_status(self, make_ticket):
        ticket = make_ticket(reporter_id="u1", status=TicketStatus.SPAM)
        assert TicketFilter(reporter_id="u1").matches(ticket)
        assert not TicketFilter(reporter_id="u2").matches(ticket)
        assert TicketFilter(statuses=[TicketStatus.SPAM]).matches(ticket)
        assert not TicketFilter(statuses=[TicketStatus.PENDING]).matches(ticket)


class TestRoleProjection:
    def test_unknown_tab_is_validation_error(self):
        projection = RoleProjection(role=Role.ENGINEER, tabs={"PendingReview": []})
        with pytest.raises(ValidationError):
            projection.tab("Completed")

    def test_current_user_requires_id(self):
        with pytest.raises(PydanticValidationError):
            CurrentUser(id="", role=Role.CITIZEN)
