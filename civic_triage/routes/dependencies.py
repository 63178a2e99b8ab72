"""
Request-scoped dependencies for the HTTP routes

Services are built once per application in `create_app` and hung off
`app.state`; these helpers hand them to route handlers. The acting user is
read from headers set by the upstream authentication layer.
"""
from fastapi import Header, Request

from civic_triage.errors import ValidationError
from civic_triage.models.schemas import CurrentUser, Role, parse_enum
from civic_triage.services.assignment import AssignmentCoordinator
from civic_triage.services.dashboard import DashboardService
from civic_triage.services.workflow import WorkflowEngine


def get_current_user(
    x_user_id: str = Header(..., description="Acting user id"),
    x_user_role: str = Header(..., description="Citizen, Engineer or Council"),
    x_user_name: str = Header("", description="Display name"),
) -> CurrentUser:
    """Build the acting user; blank ids and unknown roles raise ValidationError."""
    user_id = x_user_id.strip()
    if not user_id:
        raise ValidationError("X-User-Id header must not be empty")
    return CurrentUser(
        id=user_id,
        role=parse_enum(Role, x_user_role, "role"),
        display_name=x_user_name,
    )


def get_workflow(request: Request) -> WorkflowEngine:
    return request.app.state.workflow


def get_dashboard(request: Request) -> DashboardService:
    return request.app.state.dashboard


def get_assignment(request: Request) -> AssignmentCoordinator:
    return request.app.state.assignment
