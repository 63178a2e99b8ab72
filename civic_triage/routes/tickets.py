"""
Ticket-related API routes

Thin HTTP surface over the workflow engine, dashboard service and
assignment coordinator. Typed triage failures are turned into HTTP errors
by the handlers registered in `civic_triage.main`.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from civic_triage.models.schemas import (
    CurrentUser,
    Engineer,
    IssueType,
    RoleProjection,
    Severity,
    Ticket,
)
from civic_triage.routes.dependencies import (
    get_assignment,
    get_current_user,
    get_dashboard,
    get_workflow,
)
from civic_triage.services.assignment import AssignmentCoordinator
from civic_triage.services.dashboard import DashboardService
from civic_triage.services.workflow import WorkflowEngine
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/tickets", tags=["tickets"])


# ============================================================================
# Request Models
# ============================================================================

class SubmitTicketRequest(BaseModel):
    """New ticket from the reporting screen"""
    type: str = Field(..., description="Issue category")
    severity: str = Field(..., description="Low, Medium or High")
    location: str = ""
    description: str = ""
    image_ref: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AcceptRequest(BaseModel):
    reason: str = ""
    engineer_name: str = ""
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = ""


class SpamRequest(BaseModel):
    reason: Optional[str] = None


class ReviewRequest(BaseModel):
    """Council hand-off to an engineer with instructions"""
    engineer_name: Optional[str] = None
    notes: Optional[str] = None


# ============================================================================
# Collection endpoints
# ============================================================================

@router.post("", response_model=Ticket, status_code=status.HTTP_201_CREATED)
async def submit_ticket(
    body: SubmitTicketRequest,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    """Submit a new ticket as the acting user"""
    return await workflow.submit(
        body.type,
        body.severity,
        body.location,
        body.description,
        user.id,
        body.image_ref,
        latitude=body.latitude,
        longitude=body.longitude,
        actor=user,
    )


@router.get("/dashboard", response_model=RoleProjection)
async def dashboard(
    average_response_time: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard),
):
    """Tabs, counts and stats for the acting user's role"""
    return await service.load(user, average_response_time=average_response_time)


@router.get("/search", response_model=List[Ticket])
async def search(
    tab: Optional[str] = None,
    query: str = "",
    type: Optional[str] = Query(None, description="Issue type or All"),
    severity: Optional[str] = Query(None, description="Severity or All"),
    fields: Optional[List[str]] = Query(None, description="Location and/or Description"),
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard),
):
    """Search within one dashboard tab"""
    return await service.search(user, tab, query, type, severity, fields)


@router.get("/engineers", response_model=List[Engineer])
async def list_engineers(
    user: CurrentUser = Depends(get_current_user),
    assignment: AssignmentCoordinator = Depends(get_assignment),
):
    """Assignment candidates with their current workload"""
    return await assignment.list_candidates()


@router.get("/options")
async def options():
    """Allowed ticket categories and severities"""
    return {
        "types": [t.value for t in IssueType],
        "severities": [s.value for s in Severity],
    }


# ============================================================================
# Single-ticket endpoints
# ============================================================================

@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(
    ticket_id: str,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    return await workflow.get(ticket_id)


@router.post("/{ticket_id}/accept", response_model=Ticket)
async def accept_ticket(
    ticket_id: str,
    body: AcceptRequest,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    return await workflow.accept(ticket_id, body.reason, body.engineer_name, body.notes, actor=user)


@router.post("/{ticket_id}/reject", response_model=Ticket)
async def reject_ticket(
    ticket_id: str,
    body: RejectRequest,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    return await workflow.reject(ticket_id, body.reason, actor=user)


@router.post("/{ticket_id}/spam", response_model=Ticket)
async def mark_spam(
    ticket_id: str,
    body: Optional[SpamRequest] = None,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    return await workflow.mark_spam(ticket_id, body.reason if body else None, actor=user)


@router.post("/{ticket_id}/review", response_model=Ticket)
async def mark_under_review(
    ticket_id: str,
    body: Optional[ReviewRequest] = None,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    body = body or ReviewRequest()
    return await workflow.mark_under_review(ticket_id, body.engineer_name, body.notes, actor=user)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(
    ticket_id: str,
    user: CurrentUser = Depends(get_current_user),
    workflow: WorkflowEngine = Depends(get_workflow),
):
    await workflow.delete(ticket_id, actor=user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
