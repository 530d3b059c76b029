from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from workspace_calendar.schemas.calendar import CalendarStats, ReportDeadlineStats
from workspace_calendar.services.partitioned_fetch import PartitionResults


def sum_calendar_stats(partials: Iterable[CalendarStats]) -> CalendarStats:
    """
    Add per-workspace calendar statistics field by field.

    Each partial was windowed independently by its own workspace; an event
    reachable from two workspaces is counted twice. That is accepted.
    """
    total = CalendarStats()
    for part in partials:
        total.today_events += part.today_events
        total.week_events += part.week_events
        total.pending_deadlines += part.pending_deadlines
        total.completed_this_week += part.completed_this_week
    return total


def sum_report_deadline_stats(partials: Iterable[ReportDeadlineStats]) -> ReportDeadlineStats:
    total = ReportDeadlineStats()
    for part in partials:
        total.due_today += part.due_today
        total.due_this_week += part.due_this_week
        total.overdue += part.overdue
        total.submitted += part.submitted
    return total


def aggregate_calendar_stats(partitions: PartitionResults[CalendarStats]) -> CalendarStats:
    return sum_calendar_stats(stats for _, stats in partitions.ordered())


def aggregate_report_deadline_stats(partitions: PartitionResults[ReportDeadlineStats]) -> ReportDeadlineStats:
    return sum_report_deadline_stats(stats for _, stats in partitions.ordered())


def localize(now: datetime, timezone: str) -> datetime:
    """Express `now` in `timezone`; a naive value is taken to be local time there."""
    zone = ZoneInfo(timezone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def day_window(now: datetime, timezone: str) -> tuple[datetime, datetime]:
    local = localize(now, timezone)
    start = datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)
    return start, start + timedelta(days=1)


def week_window(now: datetime, timezone: str) -> tuple[datetime, datetime]:
    """Monday 00:00 of the current week up to the next Monday, in `timezone`."""
    day_start, _ = day_window(now, timezone)
    start = day_start - timedelta(days=day_start.weekday())
    return start, start + timedelta(days=7)
