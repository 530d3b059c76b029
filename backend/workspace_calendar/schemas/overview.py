from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from workspace_calendar.models.enums import ResourceKind
from workspace_calendar.schemas.calendar import CalendarEventItem, CalendarStats, ReportDeadlineStats
from workspace_calendar.schemas.lookups import DepartmentLookup, TeamLookup, UserLookup
from workspace_calendar.schemas.report import ReportItem


class PartitionFailureOut(BaseModel):
    workspace_id: uuid.UUID
    resource: ResourceKind
    message: str


class CalendarOverviewResponse(BaseModel):
    scope: list[uuid.UUID]
    events: list[CalendarEventItem]
    stats: CalendarStats
    report_items: list[ReportItem]
    report_stats: ReportDeadlineStats
    users: list[UserLookup] = Field(default_factory=list)
    teams: list[TeamLookup] = Field(default_factory=list)
    departments: list[DepartmentLookup] = Field(default_factory=list)
    partial_failures: list[uuid.UUID] = Field(default_factory=list)
    failures: list[PartitionFailureOut] = Field(default_factory=list)


class EventListResponse(BaseModel):
    scope: list[uuid.UUID]
    events: list[CalendarEventItem]
    partial_failures: list[uuid.UUID] = Field(default_factory=list)
    failures: list[PartitionFailureOut] = Field(default_factory=list)
