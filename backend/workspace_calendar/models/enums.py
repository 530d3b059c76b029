from __future__ import annotations

import enum


class WorkspaceType(str, enum.Enum):
    main = "main"
    sub = "sub"


class WorkspaceRole(str, enum.Enum):
    member = "member"
    admin = "admin"
    owner = "owner"


class EventType(str, enum.Enum):
    meeting = "meeting"
    deadline = "deadline"
    training = "training"
    review = "review"
    reminder = "reminder"
    report = "report"
    other = "other"


class EventStatus(str, enum.Enum):
    scheduled = "scheduled"
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"


class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class EventVisibility(str, enum.Enum):
    public = "public"
    private = "private"
    restricted = "restricted"


class ReportStatus(str, enum.Enum):
    draft = "draft"
    pending = "pending"
    submitted = "submitted"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"
    archived = "archived"


class TemplateStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    archived = "archived"


class DeadlineFrequency(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class Capability(str, enum.Enum):
    VIEW_CALENDAR = "VIEW_CALENDAR"
    VIEW_ALL_EVENTS = "VIEW_ALL_EVENTS"
    CREATE_EVENTS = "CREATE_EVENTS"
    EDIT_EVENTS = "EDIT_EVENTS"
    DELETE_EVENTS = "DELETE_EVENTS"
    CREATE_RESTRICTED_EVENTS = "CREATE_RESTRICTED_EVENTS"
    MANAGE_REPORT_DEADLINES = "MANAGE_REPORT_DEADLINES"


class ResourceKind(str, enum.Enum):
    events = "events"
    calendar_stats = "calendar_stats"
    report_stats = "report_stats"
    user_reports = "user_reports"
    workspace_reports = "workspace_reports"
    templates = "templates"
    users = "users"
    teams = "teams"
    departments = "departments"
