from __future__ import annotations

from fastapi import HTTPException, status

from workspace_calendar.models.enums import Capability, EventVisibility
from workspace_calendar.services.calendar_access import Principal, can_use_visibility


def ensure_calendar_access(principal: Principal) -> None:
    if not principal.has(Capability.VIEW_CALENDAR):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def ensure_event_visibility_allowed(principal: Principal, visibility: EventVisibility) -> None:
    """Write-boundary guard for event create/update handlers of the persistence layer.

    This service only reads; event writes are owned elsewhere and call this before
    accepting a `restricted` visibility.
    """
    if not can_use_visibility(visibility, principal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not allowed to use {visibility.value} visibility",
        )
