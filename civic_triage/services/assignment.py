"""
Assignment Coordinator

Bridges the accept transition to the external engineer directory: lists
candidates for the council's assignment screen and checks that a chosen
engineer is on the current roster.
"""
from typing import List, Optional

from civic_triage.errors import TriageError, UpstreamUnavailable, ValidationError
from civic_triage.models.schemas import Engineer
from civic_triage.repositories.engineer_repository import EngineerDirectory
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)


class AssignmentCoordinator:
    """Roster lookups for engineer assignment. Never retries."""

    def __init__(self, directory: EngineerDirectory, enforce_roster: bool = True) -> None:
        self.directory = directory
        self.enforce_roster = enforce_roster

    async def list_candidates(self) -> List[Engineer]:
        """
        Fetch the current engineer roster with workload stats.

        Raises:
            UpstreamUnavailable: If the directory cannot be reached
        """
        try:
            return await self.directory.list()
        except TriageError:
            raise
        except Exception as exc:
            logger.error("Engineer directory read failed: %s", exc)
            raise UpstreamUnavailable(f"Engineer directory unavailable: {exc}") from exc

    @staticmethod
    def _match(roster: List[Engineer], engineer_name: str) -> Optional[Engineer]:
        key = engineer_name.strip().casefold()
        if not key:
            return None
        for engineer in roster:
            if engineer.name.strip().casefold() == key:
                return engineer
        return None

    async def validate_assignable(self, engineer_name: str) -> bool:
        """True if the engineer appears in the current roster."""
        roster = await self.list_candidates()
        return self._match(roster, engineer_name) is not None

    async def resolve_assignee(self, engineer_name: str) -> str:
        """
        Resolve a requested engineer to the roster's spelling of their name.

        Performs exactly one directory read.

        Raises:
            ValidationError: If the engineer is not on the roster
            UpstreamUnavailable: If the directory cannot be reached
        """
        roster = await self.list_candidates()
        engineer = self._match(roster, engineer_name)
        if engineer is None:
            raise ValidationError(f"Engineer '{engineer_name}' is not on the current roster")
        return engineer.name
