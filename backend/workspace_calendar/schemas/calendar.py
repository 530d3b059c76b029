from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from workspace_calendar.models.enums import EventStatus, EventType, EventVisibility, Priority


class CalendarEventOut(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    title: str
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime
    all_day: bool = False
    type: EventType = EventType.other
    status: EventStatus = EventStatus.scheduled
    priority: Priority = Priority.medium
    visibility: EventVisibility = EventVisibility.public
    created_by: uuid.UUID
    attendees: set[uuid.UUID] = Field(default_factory=set)
    team_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None


class CalendarEventItem(BaseModel):
    event: CalendarEventOut
    can_view: bool
    can_edit: bool
    can_delete: bool


class EventFilters(BaseModel):
    types: list[EventType] = Field(default_factory=list)
    statuses: list[EventStatus] = Field(default_factory=list)
    priorities: list[Priority] = Field(default_factory=list)
    department_ids: list[uuid.UUID] = Field(default_factory=list)
    team_ids: list[uuid.UUID] = Field(default_factory=list)
    search: str | None = None


class CalendarStats(BaseModel):
    today_events: int = 0
    week_events: int = 0
    pending_deadlines: int = 0
    completed_this_week: int = 0


class ReportDeadlineStats(BaseModel):
    due_today: int = 0
    due_this_week: int = 0
    overdue: int = 0
    submitted: int = 0
