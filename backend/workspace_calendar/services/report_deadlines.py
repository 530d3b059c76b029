from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone

from workspace_calendar.models.enums import DeadlineFrequency
from workspace_calendar.schemas.report import ReportOut, ReportTemplateOut


FALLBACK_DUE_DAYS = 30

_FREQUENCY_MONTHS: dict[DeadlineFrequency, int] = {
    DeadlineFrequency.monthly: 1,
    DeadlineFrequency.quarterly: 3,
    DeadlineFrequency.yearly: 12,
}


def add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the last day of a shorter month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(frequency: DeadlineFrequency, now: datetime) -> datetime:
    if frequency == DeadlineFrequency.weekly:
        return now + timedelta(days=7)
    return add_months(now, _FREQUENCY_MONTHS[frequency])


def project_due_date(
    report: ReportOut,
    template: ReportTemplateOut | None,
    *,
    now: datetime | None = None,
) -> datetime:
    """
    Return the due date shown for a report.

    Rules:
    - A template with a deadline frequency gives the next occurrence counted
      from `now` (weekly +7 days, monthly +1 month, quarterly +3 months,
      yearly +1 year). The report's own dates are not used as the anchor.
    - Otherwise the report is due 30 days after it was submitted, or after
      it was created when it has never been submitted.

    Usage:
        due = project_due_date(report, template, now=datetime(2024, 1, 15, tzinfo=timezone.utc))
        print(due.date())  # 2024-02-15 for a monthly template
    """
    frequency = template.deadline_config.frequency if template and template.deadline_config else None
    if frequency is not None:
        return next_occurrence(frequency, now or datetime.now(timezone.utc))

    anchor = report.submitted_at or report.created_at
    return anchor + timedelta(days=FALLBACK_DUE_DAYS)
