from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workspace_calendar.config import settings
from workspace_calendar.db import SessionLocal
from workspace_calendar.models.calendar_event import CalendarEvent, CalendarEventAttendee
from workspace_calendar.models.department import Department
from workspace_calendar.models.enums import (
    EventStatus,
    EventType,
    EventVisibility,
    ReportStatus,
    TemplateStatus,
    WorkspaceRole,
    WorkspaceType,
)
from workspace_calendar.models.report import Report
from workspace_calendar.models.report_template import ReportTemplate
from workspace_calendar.models.team import Team
from workspace_calendar.models.user import User
from workspace_calendar.models.workspace import Workspace, WorkspaceMember
from workspace_calendar.schemas.calendar import CalendarEventOut, CalendarStats, EventFilters, ReportDeadlineStats
from workspace_calendar.schemas.lookups import DepartmentLookup, TeamLookup, UserLookup
from workspace_calendar.schemas.report import DeadlineConfig, ReportOut, ReportTemplateOut
from workspace_calendar.schemas.workspace import WorkspaceOut
from workspace_calendar.services.calendar_access import Principal
from workspace_calendar.services.calendar_stats import day_window, week_window
from workspace_calendar.services.sources import CalendarSources


OPEN_EVENT_STATUSES = (EventStatus.scheduled, EventStatus.pending)
CLOSED_EVENT_STATUSES = (EventStatus.completed, EventStatus.cancelled)

_REPORT_ORDER_COLUMNS = {
    "updated_at": Report.updated_at,
    "submitted_at": Report.submitted_at,
    "created_at": Report.created_at,
}


def _event_to_out(e: CalendarEvent) -> CalendarEventOut:
    return CalendarEventOut(
        id=e.id,
        workspace_id=e.workspace_id,
        title=e.title,
        description=e.description,
        location=e.location,
        start=e.starts_at,
        end=e.ends_at,
        all_day=e.all_day,
        type=e.event_type,
        status=e.status,
        priority=e.priority,
        visibility=e.visibility,
        created_by=e.created_by,
        attendees={a.user_id for a in e.attendees},
        team_id=e.team_id,
        department_id=e.department_id,
    )


def _report_to_out(r: Report) -> ReportOut:
    return ReportOut(
        id=r.id,
        workspace_id=r.workspace_id,
        author_id=r.author_id,
        title=r.title,
        status=r.status,
        priority=r.priority,
        submitted_at=r.submitted_at,
        created_at=r.created_at,
        updated_at=r.updated_at,
        template_id=r.template_id,
    )


def _template_to_out(t: ReportTemplate) -> ReportTemplateOut:
    deadline_config = None
    if t.deadline_frequency is not None or t.deadline_priority is not None:
        deadline_config = DeadlineConfig(frequency=t.deadline_frequency, priority=t.deadline_priority)
    return ReportTemplateOut(
        id=t.id,
        workspace_id=t.workspace_id,
        name=t.name,
        category=t.category,
        department=t.department,
        deadline_config=deadline_config,
    )


def _workspace_to_out(w: Workspace) -> WorkspaceOut:
    return WorkspaceOut(
        id=w.id,
        name=w.name,
        workspace_type=w.workspace_type,
        parent_workspace_id=w.parent_workspace_id,
        region_id=w.region_id,
        branch_id=w.branch_id,
    )


class _SessionScoped:
    """Base for SQL-backed sources; every call opens its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = SessionLocal) -> None:
        self._session_factory = session_factory

    async def _data_source_id(self, db: AsyncSession, workspace_id: uuid.UUID) -> uuid.UUID:
        workspace = (await db.execute(select(Workspace).where(Workspace.id == workspace_id))).scalar_one_or_none()
        if workspace is None:
            raise LookupError(f"Workspace {workspace_id} not found")
        return _workspace_to_out(workspace).data_source_id


class SqlEventStore(_SessionScoped):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
        *,
        timezone_name: str | None = None,
    ) -> None:
        super().__init__(session_factory)
        self._timezone_name = timezone_name or settings.CALENDAR_TIMEZONE

    async def get_events(
        self,
        workspace_id: uuid.UUID,
        start: datetime,
        end: datetime,
        filters: EventFilters | None = None,
        role: WorkspaceRole | None = None,
    ) -> list[CalendarEventOut]:
        # Role is not applied here; per-item access rules run after the merge.
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            stmt = select(CalendarEvent).where(
                CalendarEvent.workspace_id == source_id,
                CalendarEvent.starts_at < end,
                CalendarEvent.ends_at >= start,
            )
            if filters is not None:
                if filters.types:
                    stmt = stmt.where(CalendarEvent.event_type.in_(filters.types))
                if filters.statuses:
                    stmt = stmt.where(CalendarEvent.status.in_(filters.statuses))
                if filters.priorities:
                    stmt = stmt.where(CalendarEvent.priority.in_(filters.priorities))
                if filters.department_ids:
                    stmt = stmt.where(CalendarEvent.department_id.in_(filters.department_ids))
                if filters.team_ids:
                    stmt = stmt.where(CalendarEvent.team_id.in_(filters.team_ids))
            events = (await db.execute(stmt.order_by(CalendarEvent.starts_at, CalendarEvent.created_at))).scalars().all()
            return [_event_to_out(e) for e in events]

    async def get_upcoming_events(self, workspace_id: uuid.UUID, *, days: int, limit: int) -> list[CalendarEventOut]:
        now = datetime.now(timezone.utc)
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            stmt = (
                select(CalendarEvent)
                .where(
                    CalendarEvent.workspace_id == source_id,
                    CalendarEvent.starts_at >= now,
                    CalendarEvent.starts_at < now + timedelta(days=days),
                    CalendarEvent.status != EventStatus.cancelled,
                )
                .order_by(CalendarEvent.starts_at)
                .limit(limit)
            )
            events = (await db.execute(stmt)).scalars().all()
            return [_event_to_out(e) for e in events]

    async def _count(self, db: AsyncSession, *conditions) -> int:
        stmt = select(func.count()).select_from(CalendarEvent).where(*conditions)
        return int((await db.execute(stmt)).scalar_one())

    async def get_calendar_stats(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> CalendarStats:
        """Counts over the events this user is involved in, windowed in the calendar timezone."""
        now = datetime.now(timezone.utc)
        day_start, day_end = day_window(now, self._timezone_name)
        week_start, week_end = week_window(now, self._timezone_name)
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            attended = select(CalendarEventAttendee.event_id).where(CalendarEventAttendee.user_id == user_id)
            relevant = and_(
                CalendarEvent.workspace_id == source_id,
                or_(
                    CalendarEvent.visibility == EventVisibility.public,
                    CalendarEvent.created_by == user_id,
                    CalendarEvent.id.in_(attended),
                ),
            )
            not_cancelled = CalendarEvent.status != EventStatus.cancelled
            return CalendarStats(
                today_events=await self._count(
                    db, relevant, not_cancelled, CalendarEvent.starts_at >= day_start, CalendarEvent.starts_at < day_end
                ),
                week_events=await self._count(
                    db, relevant, not_cancelled, CalendarEvent.starts_at >= week_start, CalendarEvent.starts_at < week_end
                ),
                pending_deadlines=await self._count(
                    db,
                    relevant,
                    CalendarEvent.event_type.in_((EventType.deadline, EventType.report)),
                    CalendarEvent.status.in_(OPEN_EVENT_STATUSES),
                    CalendarEvent.starts_at >= now,
                ),
                completed_this_week=await self._count(
                    db,
                    relevant,
                    CalendarEvent.status == EventStatus.completed,
                    CalendarEvent.starts_at >= week_start,
                    CalendarEvent.starts_at < week_end,
                ),
            )

    async def get_report_deadline_stats(self, workspace_id: uuid.UUID) -> ReportDeadlineStats:
        """Report deadlines are the workspace's report-type calendar events."""
        now = datetime.now(timezone.utc)
        day_start, day_end = day_window(now, self._timezone_name)
        week_start, week_end = week_window(now, self._timezone_name)
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            is_report = and_(CalendarEvent.workspace_id == source_id, CalendarEvent.event_type == EventType.report)
            still_open = CalendarEvent.status.not_in(CLOSED_EVENT_STATUSES)
            return ReportDeadlineStats(
                due_today=await self._count(
                    db, is_report, still_open, CalendarEvent.starts_at >= day_start, CalendarEvent.starts_at < day_end
                ),
                due_this_week=await self._count(
                    db, is_report, still_open, CalendarEvent.starts_at >= week_start, CalendarEvent.starts_at < week_end
                ),
                overdue=await self._count(db, is_report, still_open, CalendarEvent.starts_at < now),
                submitted=await self._count(db, is_report, CalendarEvent.status == EventStatus.completed),
            )


def _report_order(order_by: str, order_direction: str):
    column = _REPORT_ORDER_COLUMNS.get(order_by, Report.updated_at)
    if order_direction == "asc":
        return column.asc().nulls_last()
    return column.desc().nulls_last()


class SqlReportStore(_SessionScoped):
    async def get_user_reports(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        order_by: str = "updated_at",
        order_direction: str = "desc",
        limit: int | None = None,
    ) -> list[ReportOut]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            stmt = (
                select(Report)
                .where(Report.workspace_id == source_id, Report.author_id == user_id)
                .order_by(_report_order(order_by, order_direction))
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_report_to_out(r) for r in (await db.execute(stmt)).scalars().all()]

    async def get_workspace_reports(
        self,
        workspace_id: uuid.UUID,
        *,
        status: ReportStatus | None = None,
        order_by: str = "submitted_at",
        order_direction: str = "desc",
        limit: int | None = None,
    ) -> list[ReportOut]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            stmt = select(Report).where(Report.workspace_id == source_id)
            if status is not None:
                stmt = stmt.where(Report.status == status)
            stmt = stmt.order_by(_report_order(order_by, order_direction))
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_report_to_out(r) for r in (await db.execute(stmt)).scalars().all()]


class SqlTemplateStore(_SessionScoped):
    async def get_workspace_templates(
        self, workspace_id: uuid.UUID, *, status: TemplateStatus | None = None
    ) -> list[ReportTemplateOut]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            stmt = select(ReportTemplate).where(ReportTemplate.workspace_id == source_id)
            if status is not None:
                stmt = stmt.where(ReportTemplate.status == status)
            templates = (await db.execute(stmt.order_by(ReportTemplate.name))).scalars().all()
            return [_template_to_out(t) for t in templates]


class SqlDirectory(_SessionScoped):
    """Users, teams, departments and workspaces visible from a workspace."""

    async def get_users_by_workspace(self, workspace_id: uuid.UUID) -> list[UserLookup]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            users = (
                await db.execute(
                    select(User)
                    .join(WorkspaceMember, WorkspaceMember.user_id == User.id)
                    .where(WorkspaceMember.workspace_id == source_id, User.is_active.is_(True))
                    .order_by(User.full_name)
                )
            ).scalars().all()
            return [
                UserLookup(
                    id=u.id,
                    full_name=u.full_name,
                    email=u.email,
                    branch=u.branch,
                    department=u.department,
                    region=u.region,
                )
                for u in users
            ]

    async def get_workspace_teams(self, workspace_id: uuid.UUID) -> list[TeamLookup]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            teams = (
                await db.execute(select(Team).where(Team.workspace_id == source_id).order_by(Team.name))
            ).scalars().all()
            return [
                TeamLookup(id=t.id, workspace_id=t.workspace_id, name=t.name, department_id=t.department_id)
                for t in teams
            ]

    async def get_workspace_departments(self, workspace_id: uuid.UUID) -> list[DepartmentLookup]:
        async with self._session_factory() as db:
            source_id = await self._data_source_id(db, workspace_id)
            departments = (
                await db.execute(
                    select(Department).where(Department.workspace_id == source_id).order_by(Department.name)
                )
            ).scalars().all()
            return [
                DepartmentLookup(id=d.id, workspace_id=d.workspace_id, name=d.name, code=d.code)
                for d in departments
            ]

    async def get_accessible_workspaces(self, principal: Principal) -> list[WorkspaceOut]:
        accessible_ids = list(principal.accessible_workspace_ids)
        async with self._session_factory() as db:
            stmt = select(Workspace).where(Workspace.id.in_(accessible_ids))
            if principal.is_owner:
                # Owners also reach the sub workspaces hanging off what they own.
                stmt = select(Workspace).where(
                    or_(
                        Workspace.id.in_(accessible_ids),
                        and_(
                            Workspace.workspace_type == WorkspaceType.sub,
                            Workspace.parent_workspace_id.in_(accessible_ids),
                        ),
                    )
                )
            workspaces = (await db.execute(stmt.order_by(Workspace.name))).scalars().all()

        position = {wid: index for index, wid in enumerate(accessible_ids)}
        ordered = sorted(workspaces, key=lambda w: position.get(w.id, len(position)))
        return [_workspace_to_out(w) for w in ordered]


def build_sql_sources(session_factory: async_sessionmaker[AsyncSession] = SessionLocal) -> CalendarSources:
    directory = SqlDirectory(session_factory)
    return CalendarSources(
        events=SqlEventStore(session_factory),
        reports=SqlReportStore(session_factory),
        templates=SqlTemplateStore(session_factory),
        users=directory,
        teams=directory,
        departments=directory,
        workspaces=directory,
    )
