"""
Engineer Directory

Read-only access to the engineer roster and each engineer's workload. The
roster lives in the Supabase `profiles` table (role = engineer); workload is
derived from the accepted tickets assigned to each engineer.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional

from civic_triage.config import get_settings
from civic_triage.errors import UpstreamUnavailable
from civic_triage.models.schemas import Engineer
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class EngineerDirectory(ABC):
    """External engineer roster"""

    @abstractmethod
    async def list(self) -> List[Engineer]:
        """
        Fetch the current roster with workload statistics.

        Raises:
            UpstreamUnavailable: If the directory cannot be reached
        """


class InMemoryEngineerDirectory(EngineerDirectory):
    """Fixed roster, for local runs and tests"""

    def __init__(self, engineers: Optional[List[Engineer]] = None) -> None:
        self._engineers = list(engineers or [])

    async def list(self) -> List[Engineer]:
        return list(self._engineers)


class EngineerRepository(EngineerDirectory):
    """Supabase-backed engineer roster"""

    def __init__(
        self,
        supabase_client=None,
        profiles_table: Optional[str] = None,
        tickets_table: Optional[str] = None,
    ) -> None:
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            self.client = create_client(
                settings.supabase_url,
                settings.supabase_api_key
            )
        else:
            self.client = supabase_client

        self.profiles_table = profiles_table or settings.profiles_table
        self.tickets_table = tickets_table or settings.tickets_table
        logger.info("EngineerRepository initialized for table: %s", self.profiles_table)

    def list_sync(self) -> List[Engineer]:
        """Fetch engineers and their assigned-ticket counts."""
        try:
            profiles = self.client.table(self.profiles_table) \
                .select("id,full_name,email") \
                .eq("role", "engineer") \
                .execute()

            assigned = self.client.table(self.tickets_table) \
                .select("assigned_engineer_name,severity") \
                .eq("status", "Accepted") \
                .execute()

            totals: Counter = Counter()
            high: Counter = Counter()
            for row in assigned.data or []:
                name = row.get("assigned_engineer_name")
                if not name:
                    continue
                totals[name] += 1
                if str(row.get("severity", "")).lower() == "high":
                    high[name] += 1

            engineers = []
            for row in profiles.data or []:
                name = row.get("full_name") or "Unknown"
                engineers.append(Engineer(
                    id=str(row["id"]) if row.get("id") is not None else None,
                    name=name,
                    email=row.get("email") or "",
                    total_assigned=totals[name],
                    high_priority_assigned=high[name],
                ))

            logger.debug("Fetched %d engineers", len(engineers))
            return engineers

        except Exception as exc:
            logger.error("Failed to fetch engineers: %s", exc)
            raise UpstreamUnavailable(f"Engineer directory unavailable: {exc}") from exc

    async def list(self) -> List[Engineer]:
        return await asyncio.to_thread(self.list_sync)
