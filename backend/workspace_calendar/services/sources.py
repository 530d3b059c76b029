from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from workspace_calendar.models.enums import ReportStatus, TemplateStatus, WorkspaceRole
from workspace_calendar.schemas.calendar import CalendarEventOut, CalendarStats, EventFilters, ReportDeadlineStats
from workspace_calendar.schemas.lookups import DepartmentLookup, TeamLookup, UserLookup
from workspace_calendar.schemas.report import ReportOut, ReportTemplateOut
from workspace_calendar.schemas.workspace import WorkspaceOut
from workspace_calendar.services.calendar_access import Principal


class EventStore(Protocol):
    async def get_events(
        self,
        workspace_id: uuid.UUID,
        start: datetime,
        end: datetime,
        filters: EventFilters | None = None,
        role: WorkspaceRole | None = None,
    ) -> list[CalendarEventOut]: ...

    async def get_upcoming_events(
        self, workspace_id: uuid.UUID, *, days: int, limit: int
    ) -> list[CalendarEventOut]: ...

    async def get_calendar_stats(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> CalendarStats: ...

    async def get_report_deadline_stats(self, workspace_id: uuid.UUID) -> ReportDeadlineStats: ...


class ReportStore(Protocol):
    async def get_user_reports(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        order_by: str = "updated_at",
        order_direction: str = "desc",
        limit: int | None = None,
    ) -> list[ReportOut]: ...

    async def get_workspace_reports(
        self,
        workspace_id: uuid.UUID,
        *,
        status: ReportStatus | None = None,
        order_by: str = "submitted_at",
        order_direction: str = "desc",
        limit: int | None = None,
    ) -> list[ReportOut]: ...


class TemplateStore(Protocol):
    async def get_workspace_templates(
        self, workspace_id: uuid.UUID, *, status: TemplateStatus | None = None
    ) -> list[ReportTemplateOut]: ...


class UserDirectory(Protocol):
    async def get_users_by_workspace(self, workspace_id: uuid.UUID) -> list[UserLookup]: ...


class TeamDirectory(Protocol):
    async def get_workspace_teams(self, workspace_id: uuid.UUID) -> list[TeamLookup]: ...


class DepartmentDirectory(Protocol):
    async def get_workspace_departments(self, workspace_id: uuid.UUID) -> list[DepartmentLookup]: ...


class WorkspaceDirectory(Protocol):
    async def get_accessible_workspaces(self, principal: Principal) -> list[WorkspaceOut]: ...


@dataclass(frozen=True)
class CalendarSources:
    events: EventStore
    reports: ReportStore
    templates: TemplateStore
    users: UserDirectory
    teams: TeamDirectory
    departments: DepartmentDirectory
    workspaces: WorkspaceDirectory
