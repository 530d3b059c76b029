from workspace_calendar.models.calendar_event import CalendarEvent, CalendarEventAttendee
from workspace_calendar.models.department import Department
from workspace_calendar.models.report import Report
from workspace_calendar.models.report_template import ReportTemplate
from workspace_calendar.models.team import Team
from workspace_calendar.models.user import User
from workspace_calendar.models.workspace import Workspace, WorkspaceMember

__all__ = [
    "CalendarEvent",
    "CalendarEventAttendee",
    "Department",
    "Report",
    "ReportTemplate",
    "Team",
    "User",
    "Workspace",
    "WorkspaceMember",
]
