from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from workspace_calendar.config import Settings
from workspace_calendar.models.enums import Capability, ReportStatus, ResourceKind, TemplateStatus
from workspace_calendar.schemas.calendar import CalendarEventOut, EventFilters
from workspace_calendar.schemas.overview import CalendarOverviewResponse, EventListResponse, PartitionFailureOut
from workspace_calendar.services.calendar_access import Principal, filter_events, filter_reports
from workspace_calendar.services.calendar_stats import aggregate_calendar_stats, aggregate_report_deadline_stats
from workspace_calendar.services.event_filters import apply_event_filters, sort_by_start
from workspace_calendar.services.merge import merge_partitions, merge_unique
from workspace_calendar.services.partitioned_fetch import PartitionResults, fetch_partitions
from workspace_calendar.services.report_deadlines import add_months
from workspace_calendar.services.report_items import build_report_items
from workspace_calendar.services.sources import CalendarSources
from workspace_calendar.services.workspace_scope import readable_workspace_ids, resolve_workspace_scope


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime

    @classmethod
    def around(cls, now: datetime) -> DateWindow:
        # Wide enough to navigate the calendar without refetching.
        return cls(start=add_months(now, -6), end=add_months(now, 24))


@dataclass(frozen=True)
class QueryContext:
    principal: Principal
    include_all_accessible: bool = False
    date_window: DateWindow | None = None
    filters: EventFilters | None = None
    now: datetime | None = None

    def resolved_now(self) -> datetime:
        return self.now or datetime.now(timezone.utc)


@dataclass(frozen=True)
class AggregationLimits:
    concurrency: int = 8
    timeout: float | None = 10.0
    report_items: int = 8
    user_reports: int = 10
    workspace_reports: int = 5
    upcoming_days: int = 7
    upcoming_events: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> AggregationLimits:
        return cls(
            concurrency=settings.CALENDAR_FETCH_CONCURRENCY,
            timeout=settings.CALENDAR_FETCH_TIMEOUT_SECONDS,
            report_items=settings.CALENDAR_REPORT_ITEMS_LIMIT,
            user_reports=settings.CALENDAR_USER_REPORTS_LIMIT,
            workspace_reports=settings.CALENDAR_WORKSPACE_REPORTS_LIMIT,
            upcoming_days=settings.CALENDAR_UPCOMING_DAYS,
            upcoming_events=settings.CALENDAR_UPCOMING_LIMIT,
        )


async def resolve_scope(ctx: QueryContext, sources: CalendarSources) -> tuple[list[uuid.UUID], frozenset[uuid.UUID]]:
    """Workspace ids to query, and every workspace id their rows may carry."""
    accessible = await sources.workspaces.get_accessible_workspaces(ctx.principal)
    scope = resolve_workspace_scope(
        ctx.principal,
        include_all_accessible=ctx.include_all_accessible,
        accessible_workspaces=accessible,
    )
    return scope, readable_workspace_ids(scope, accessible)


def collect_failures(
    scope: list[uuid.UUID], partitions: list[PartitionResults]
) -> tuple[list[uuid.UUID], list[PartitionFailureOut]]:
    """Failed workspace ids in scope order, plus one detail entry per failed fetch."""
    details: list[PartitionFailureOut] = []
    failed: set[uuid.UUID] = set()
    for partition in partitions:
        for workspace_id in partition.workspace_ids:
            error = partition.failures.get(workspace_id)
            if error is None:
                continue
            failed.add(workspace_id)
            details.append(
                PartitionFailureOut(workspace_id=workspace_id, resource=error.resource, message=error.message)
            )
    return [wid for wid in scope if wid in failed], details


async def build_calendar_overview(
    ctx: QueryContext,
    sources: CalendarSources,
    limits: AggregationLimits | None = None,
) -> CalendarOverviewResponse:
    """
    Calendar page query:
    - events in the date window from every workspace in scope, deduplicated,
      access-filtered, then narrowed by the caller's filters
    - calendar and report-deadline statistics summed across workspaces
    - the report list (own reports first, then recent submissions for
      deadline managers), adapted and ranked
    - users/teams/departments for the filter dropdowns
    Workspaces that fail are listed in `partial_failures`; the rest still count.
    """
    limits = limits or AggregationLimits()
    principal = ctx.principal
    now = ctx.resolved_now()
    window = ctx.date_window or DateWindow.around(now)

    scope, readable_ids = await resolve_scope(ctx, sources)
    limiter = asyncio.Semaphore(limits.concurrency)

    def _fan_out(fetch, resource: ResourceKind):
        return fetch_partitions(fetch, scope, resource=resource, limiter=limiter, timeout=limits.timeout)

    async def _workspace_reports() -> PartitionResults:
        # Recent submissions are only listed for deadline managers.
        if not principal.has(Capability.MANAGE_REPORT_DEADLINES):
            return PartitionResults(resource=ResourceKind.workspace_reports, workspace_ids=[])
        return await _fan_out(
            lambda wid: sources.reports.get_workspace_reports(
                wid,
                status=ReportStatus.submitted,
                order_by="submitted_at",
                order_direction="desc",
                limit=limits.workspace_reports,
            ),
            ResourceKind.workspace_reports,
        )

    (
        events_part,
        stats_part,
        report_stats_part,
        user_reports_part,
        workspace_reports_part,
        templates_part,
        users_part,
        teams_part,
        departments_part,
    ) = await asyncio.gather(
        _fan_out(
            lambda wid: sources.events.get_events(wid, window.start, window.end, ctx.filters, principal.role),
            ResourceKind.events,
        ),
        _fan_out(lambda wid: sources.events.get_calendar_stats(wid, principal.user_id), ResourceKind.calendar_stats),
        _fan_out(lambda wid: sources.events.get_report_deadline_stats(wid), ResourceKind.report_stats),
        _fan_out(
            lambda wid: sources.reports.get_user_reports(
                wid,
                principal.user_id,
                order_by="updated_at",
                order_direction="desc",
                limit=limits.user_reports,
            ),
            ResourceKind.user_reports,
        ),
        _workspace_reports(),
        _fan_out(
            lambda wid: sources.templates.get_workspace_templates(wid, status=TemplateStatus.active),
            ResourceKind.templates,
        ),
        _fan_out(sources.users.get_users_by_workspace, ResourceKind.users),
        _fan_out(sources.teams.get_workspace_teams, ResourceKind.teams),
        _fan_out(sources.departments.get_workspace_departments, ResourceKind.departments),
    )

    events = filter_events(merge_partitions(events_part), principal)
    events = sort_by_start(apply_event_filters(events, ctx.filters))

    users = merge_partitions(users_part)
    reports = merge_unique([merge_partitions(user_reports_part), merge_partitions(workspace_reports_part)])
    report_items = build_report_items(
        filter_reports(reports, principal, scope=readable_ids),
        templates=merge_partitions(templates_part),
        authors=users,
        principal=principal,
        now=now,
        limit=limits.report_items,
    )

    partial_failures, failures = collect_failures(
        scope,
        [
            events_part,
            stats_part,
            report_stats_part,
            user_reports_part,
            workspace_reports_part,
            templates_part,
            users_part,
            teams_part,
            departments_part,
        ],
    )
    if partial_failures:
        logger.warning(
            "Calendar overview for user %s is partial; unreachable workspaces: %s",
            principal.user_id,
            ", ".join(str(wid) for wid in partial_failures),
        )

    return CalendarOverviewResponse(
        scope=scope,
        events=events,
        stats=aggregate_calendar_stats(stats_part),
        report_items=report_items,
        report_stats=aggregate_report_deadline_stats(report_stats_part),
        users=users,
        teams=merge_partitions(teams_part),
        departments=merge_partitions(departments_part),
        partial_failures=partial_failures,
        failures=failures,
    )


async def build_upcoming_events(
    ctx: QueryContext,
    sources: CalendarSources,
    limits: AggregationLimits | None = None,
) -> EventListResponse:
    limits = limits or AggregationLimits()
    principal = ctx.principal
    scope, _ = await resolve_scope(ctx, sources)

    partitions = await fetch_partitions(
        lambda wid: sources.events.get_upcoming_events(wid, days=limits.upcoming_days, limit=limits.upcoming_events),
        scope,
        resource=ResourceKind.events,
        limiter=asyncio.Semaphore(limits.concurrency),
        timeout=limits.timeout,
    )
    events = sort_by_start(filter_events(merge_partitions(partitions), principal))

    partial_failures, failures = collect_failures(scope, [partitions])
    return EventListResponse(
        scope=scope,
        events=events[: limits.upcoming_events],
        partial_failures=partial_failures,
        failures=failures,
    )


async def build_my_events(
    ctx: QueryContext,
    sources: CalendarSources,
    limits: AggregationLimits | None = None,
) -> EventListResponse:
    """Events the principal created, one year back to one year ahead."""
    limits = limits or AggregationLimits()
    principal = ctx.principal
    now = ctx.resolved_now()
    window = ctx.date_window or DateWindow(start=add_months(now, -12), end=add_months(now, 12))
    scope, _ = await resolve_scope(ctx, sources)

    async def _own_events(workspace_id: uuid.UUID) -> list[CalendarEventOut]:
        events = await sources.events.get_events(workspace_id, window.start, window.end, None, principal.role)
        # Only count an event from the partition it belongs to.
        return [e for e in events if e.created_by == principal.user_id and e.workspace_id == workspace_id]

    partitions = await fetch_partitions(
        _own_events,
        scope,
        resource=ResourceKind.events,
        limiter=asyncio.Semaphore(limits.concurrency),
        timeout=limits.timeout,
    )
    events = sort_by_start(filter_events(merge_partitions(partitions), principal))

    partial_failures, failures = collect_failures(scope, [partitions])
    return EventListResponse(
        scope=scope,
        events=events,
        partial_failures=partial_failures,
        failures=failures,
    )
