from __future__ import annotations

from typing import Iterable

from workspace_calendar.schemas.calendar import CalendarEventItem, CalendarEventOut, EventFilters


def _matches_search(event: CalendarEventOut, needle: str) -> bool:
    for text in (event.title, event.description, event.location):
        if text and needle in text.lower():
            return True
    return False


def event_matches_filters(event: CalendarEventOut, filters: EventFilters) -> bool:
    # Empty lists mean "no restriction".
    if filters.types and event.type not in filters.types:
        return False
    if filters.statuses and event.status not in filters.statuses:
        return False
    if filters.priorities and event.priority not in filters.priorities:
        return False
    if filters.department_ids and (event.department_id is None or event.department_id not in filters.department_ids):
        return False
    if filters.team_ids and (event.team_id is None or event.team_id not in filters.team_ids):
        return False
    needle = (filters.search or "").strip().lower()
    if needle and not _matches_search(event, needle):
        return False
    return True


def apply_event_filters(items: Iterable[CalendarEventItem], filters: EventFilters | None) -> list[CalendarEventItem]:
    if filters is None:
        return list(items)
    return [item for item in items if event_matches_filters(item.event, filters)]


def sort_by_start(items: Iterable[CalendarEventItem]) -> list[CalendarEventItem]:
    return sorted(items, key=lambda item: item.event.start)
