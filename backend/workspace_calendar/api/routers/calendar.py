from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from workspace_calendar.api.access import ensure_calendar_access
from workspace_calendar.api.deps import get_calendar_sources, get_current_principal
from workspace_calendar.config import settings
from workspace_calendar.models.enums import EventStatus, EventType, Priority
from workspace_calendar.schemas.calendar import EventFilters
from workspace_calendar.schemas.overview import CalendarOverviewResponse, EventListResponse
from workspace_calendar.services.calendar_access import Principal
from workspace_calendar.services.calendar_stats import localize
from workspace_calendar.services.calendar_overview import (
    AggregationLimits,
    DateWindow,
    QueryContext,
    build_calendar_overview,
    build_my_events,
    build_upcoming_events,
)
from workspace_calendar.services.sources import CalendarSources


router = APIRouter()


def _date_window(start: datetime | None, end: datetime | None, now: datetime) -> DateWindow | None:
    if start is None and end is None:
        return None
    # Offset-less query values are read in the calendar timezone.
    if start is not None:
        start = localize(start, settings.CALENDAR_TIMEZONE)
    if end is not None:
        end = localize(end, settings.CALENDAR_TIMEZONE)
    default = DateWindow.around(now)
    window = DateWindow(start=start or default.start, end=end or default.end)
    if window.start > window.end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must be before end")
    return window


@router.get("/overview", response_model=CalendarOverviewResponse)
async def calendar_overview(
    include_all_workspaces: bool = False,
    start: datetime | None = None,
    end: datetime | None = None,
    types: list[EventType] = Query(default=[]),
    statuses: list[EventStatus] = Query(default=[]),
    priorities: list[Priority] = Query(default=[]),
    department_ids: list[uuid.UUID] = Query(default=[]),
    team_ids: list[uuid.UUID] = Query(default=[]),
    search: str | None = None,
    principal: Principal = Depends(get_current_principal),
    sources: CalendarSources = Depends(get_calendar_sources),
) -> CalendarOverviewResponse:
    ensure_calendar_access(principal)
    now = datetime.now(timezone.utc)
    ctx = QueryContext(
        principal=principal,
        include_all_accessible=include_all_workspaces,
        date_window=_date_window(start, end, now),
        filters=EventFilters(
            types=types,
            statuses=statuses,
            priorities=priorities,
            department_ids=department_ids,
            team_ids=team_ids,
            search=search,
        ),
        now=now,
    )
    return await build_calendar_overview(ctx, sources, AggregationLimits.from_settings(settings))


@router.get("/upcoming", response_model=EventListResponse)
async def upcoming_events(
    include_all_workspaces: bool = False,
    principal: Principal = Depends(get_current_principal),
    sources: CalendarSources = Depends(get_calendar_sources),
) -> EventListResponse:
    ensure_calendar_access(principal)
    ctx = QueryContext(principal=principal, include_all_accessible=include_all_workspaces)
    return await build_upcoming_events(ctx, sources, AggregationLimits.from_settings(settings))


@router.get("/my-events", response_model=EventListResponse)
async def my_events(
    include_all_workspaces: bool = False,
    start: datetime | None = None,
    end: datetime | None = None,
    principal: Principal = Depends(get_current_principal),
    sources: CalendarSources = Depends(get_calendar_sources),
) -> EventListResponse:
    ensure_calendar_access(principal)
    now = datetime.now(timezone.utc)
    ctx = QueryContext(
        principal=principal,
        include_all_accessible=include_all_workspaces,
        date_window=_date_window(start, end, now),
        now=now,
    )
    return await build_my_events(ctx, sources, AggregationLimits.from_settings(settings))
