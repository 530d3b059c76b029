from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable

from workspace_calendar.models.enums import ReportStatus
from workspace_calendar.schemas.lookups import UserLookup
from workspace_calendar.schemas.report import ReportItem, ReportOut, ReportTemplateOut
from workspace_calendar.services.calendar_access import (
    Principal,
    can_edit_report,
    can_submit_report,
    can_view_report,
)
from workspace_calendar.services.report_deadlines import project_due_date


STATUS_RANK: dict[str, int] = {
    "pending": 0,
    "draft": 1,
    "submitted": 2,
    "approved": 3,
    "rejected": 4,
}
UNKNOWN_STATUS_RANK = 5

SUBMITTED_STATUSES = frozenset({ReportStatus.submitted, ReportStatus.under_review, ReportStatus.approved})

DEFAULT_PRIORITY = "medium"
CUSTOM_REPORT_TYPE = "custom"


def normalize_report_status(status: ReportStatus) -> str:
    if status == ReportStatus.under_review:
        return ReportStatus.submitted.value
    return status.value


def _location_label(author: UserLookup | None, template: ReportTemplateOut | None) -> str | None:
    department = (author.department if author else None) or (template.department if template else None)
    for label in (author.branch if author else None, department, author.region if author else None):
        if label:
            return label
    return None


def adapt_report_item(
    report: ReportOut,
    template: ReportTemplateOut | None,
    author: UserLookup | None,
    *,
    principal: Principal,
    now: datetime | None = None,
) -> ReportItem | None:
    """Build the view item for one report, or None when the principal may not see it.

    A missing template or author falls back to defaults instead of failing.
    """
    if not can_view_report(report, principal):
        return None

    deadline = template.deadline_config if template else None
    priority = (deadline.priority if deadline else None) or report.priority or DEFAULT_PRIORITY

    return ReportItem(
        id=report.id,
        title=report.title,
        branch=author.branch if author else None,
        department=(author.department if author else None) or (template.department if template else None),
        region=author.region if author else None,
        location=_location_label(author, template),
        due_date=project_due_date(report, template, now=now),
        status=normalize_report_status(report.status),
        priority=priority,
        submitted_by=author.full_name if author and report.status in SUBMITTED_STATUSES else None,
        type=template.category if template else CUSTOM_REPORT_TYPE,
        can_edit=can_edit_report(report, principal),
        can_submit=can_submit_report(report, principal),
        can_view=True,
    )


def report_item_sort_key(item: ReportItem) -> tuple[int, datetime]:
    return STATUS_RANK.get(item.status, UNKNOWN_STATUS_RANK), item.due_date


def build_report_items(
    reports: Iterable[ReportOut],
    *,
    templates: Iterable[ReportTemplateOut],
    authors: Iterable[UserLookup],
    principal: Principal,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[ReportItem]:
    templates_by_id: dict[uuid.UUID, ReportTemplateOut] = {t.id: t for t in templates}
    authors_by_id: dict[uuid.UUID, UserLookup] = {u.id: u for u in authors}

    items: list[ReportItem] = []
    for report in reports:
        template = templates_by_id.get(report.template_id) if report.template_id else None
        item = adapt_report_item(
            report,
            template,
            authors_by_id.get(report.author_id),
            principal=principal,
            now=now,
        )
        if item is not None:
            items.append(item)

    items.sort(key=report_item_sort_key)
    if limit is not None:
        return items[:limit]
    return items
