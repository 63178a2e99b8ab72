"""
Filter/Search Engine

Narrows one tab's tickets by a free-text query and optional type/severity
filters. Works only on an already-partitioned tab, never across tabs.

Rules:
- Text match is case-insensitive substring containment
- search_fields None: Location and Description
- search_fields empty: Location, Description and Type
- otherwise only the selected fields, OR-combined
- type/severity filters ("All" or None disables) AND with the text predicate
- output keeps input order; an empty list is a valid result
"""
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from civic_triage.models.schemas import IssueType, SearchField, Severity, Ticket

ALL = "all"

FilterValue = Optional[Union[IssueType, Severity, str]]

_FIELD_GETTERS: Dict[str, Callable[[Ticket], str]] = {
    "location": lambda t: t.location or "",
    "description": lambda t: t.description or "",
    "type": lambda t: t.type.value,
}

DEFAULT_FIELDS = ("location", "description")
FALLBACK_FIELDS = ("location", "description", "type")


def _normalize_filter(value: FilterValue) -> Optional[str]:
    """Lower-cased filter value, or None when the filter is off."""
    if value is None:
        return None
    raw = value.value if isinstance(value, Enum) else str(value)
    raw = raw.strip().lower()
    if not raw or raw == ALL:
        return None
    return raw


def _resolve_fields(search_fields: Optional[Iterable[Union[SearchField, str]]]) -> tuple:
    if search_fields is None:
        return DEFAULT_FIELDS
    selected: Set[str] = set()
    for field in search_fields:
        name = field.value if isinstance(field, Enum) else str(field)
        name = name.strip().lower()
        if name in _FIELD_GETTERS:
            selected.add(name)
    if not selected:
        return FALLBACK_FIELDS
    # Stable evaluation order
    return tuple(f for f in FALLBACK_FIELDS if f in selected)


def filter_tab(
    tab_tickets: Iterable[Ticket],
    query: str = "",
    type_filter: FilterValue = None,
    severity_filter: FilterValue = None,
    search_fields: Optional[Iterable[Union[SearchField, str]]] = None,
) -> List[Ticket]:
    """
    Filter a tab's tickets.

    Args:
        tab_tickets: Tickets of a single tab, in display order
        query: Free-text query (blank disables the text predicate)
        type_filter: IssueType, its name, "All" or None
        severity_filter: Severity, its name, "All" or None
        search_fields: Fields the query targets (see module rules)

    Returns:
        Matching tickets in input order
    """
    needle = (query or "").strip().lower()
    wanted_type = _normalize_filter(type_filter)
    wanted_severity = _normalize_filter(severity_filter)
    getters = [_FIELD_GETTERS[name] for name in _resolve_fields(search_fields)]

    def matches(ticket: Ticket) -> bool:
        if wanted_type is not None and ticket.type.value.lower() != wanted_type:
            return False
        if wanted_severity is not None and ticket.severity.value.lower() != wanted_severity:
            return False
        if needle:
            return any(needle in getter(ticket).lower() for getter in getters)
        return True

    return [ticket for ticket in tab_tickets if matches(ticket)]


class SearchEngine:
    """Dashboard search state: selected field toggles plus filters."""

    def __init__(self, search_fields: Optional[Iterable[Union[SearchField, str]]] = None) -> None:
        self.search_fields = None if search_fields is None else set(search_fields)

    def toggle(self, field: SearchField) -> None:
        """Flip one field toggle, starting from the default selection."""
        if self.search_fields is None:
            self.search_fields = {SearchField.LOCATION, SearchField.DESCRIPTION}
        if field in self.search_fields:
            self.search_fields.discard(field)
        else:
            self.search_fields.add(field)

    def apply(
        self,
        tab_tickets: Iterable[Ticket],
        query: str = "",
        type_filter: FilterValue = None,
        severity_filter: FilterValue = None,
    ) -> List[Ticket]:
        return filter_tab(tab_tickets, query, type_filter, severity_filter, self.search_fields)
