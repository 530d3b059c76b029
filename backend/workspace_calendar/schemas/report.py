from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from workspace_calendar.models.enums import DeadlineFrequency, ReportStatus


class DeadlineConfig(BaseModel):
    frequency: DeadlineFrequency | None = None
    priority: str | None = None


class ReportTemplateOut(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str | None = None
    category: str
    department: str | None = None
    deadline_config: DeadlineConfig | None = None


class ReportOut(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    author_id: uuid.UUID
    title: str
    status: ReportStatus
    priority: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    template_id: uuid.UUID | None = None


class ReportItem(BaseModel):
    id: uuid.UUID
    title: str
    branch: str | None = None
    department: str | None = None
    region: str | None = None
    location: str | None = None
    due_date: datetime
    # Normalized: under_review is presented as submitted.
    status: str
    priority: str
    submitted_by: str | None = None
    type: str
    can_edit: bool
    can_submit: bool
    can_view: bool
