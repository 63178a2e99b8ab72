"""
Triage services
"""
from .assignment import AssignmentCoordinator
from .dashboard import DashboardService
from .projector import RoleViewProjector, format_response_time, project_for_role
from .search import SearchEngine, filter_tab
from .ticket_cache import TicketCache
from .workflow import WorkflowEngine

__all__ = [
    "AssignmentCoordinator",
    "DashboardService",
    "RoleViewProjector",
    "format_response_time",
    "project_for_role",
    "SearchEngine",
    "filter_tab",
    "TicketCache",
    "WorkflowEngine",
]
