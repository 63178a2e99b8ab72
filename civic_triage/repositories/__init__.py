"""
Repositories package for ticket and engineer data

Provides:
- TicketStore contract and InMemoryTicketStore
- TicketRepository (Supabase tickets table)
- EngineerDirectory contract, InMemoryEngineerDirectory and
  EngineerRepository (Supabase profiles table)
"""
from civic_triage.repositories.base_repository import TicketStore, InMemoryTicketStore
from civic_triage.repositories.ticket_repository import TicketRepository
from civic_triage.repositories.engineer_repository import (
    EngineerDirectory,
    InMemoryEngineerDirectory,
    EngineerRepository,
)

__all__ = [
    "TicketStore",
    "InMemoryTicketStore",
    "TicketRepository",
    "EngineerDirectory",
    "InMemoryEngineerDirectory",
    "EngineerRepository",
]
