from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable

from workspace_calendar.models.enums import Capability, EventVisibility, ReportStatus, WorkspaceRole
from workspace_calendar.schemas.calendar import CalendarEventItem, CalendarEventOut
from workspace_calendar.schemas.report import ReportOut


ROLE_CAPABILITIES: dict[WorkspaceRole, frozenset[Capability]] = {
    WorkspaceRole.member: frozenset({Capability.VIEW_CALENDAR, Capability.CREATE_EVENTS}),
    WorkspaceRole.admin: frozenset(
        {
            Capability.VIEW_CALENDAR,
            Capability.CREATE_EVENTS,
            Capability.VIEW_ALL_EVENTS,
            Capability.CREATE_RESTRICTED_EVENTS,
            Capability.MANAGE_REPORT_DEADLINES,
        }
    ),
    WorkspaceRole.owner: frozenset(Capability),
}

PERMISSION_CAPABILITIES: dict[str, Capability] = {
    "calendar.view": Capability.VIEW_CALENDAR,
    "calendar.create": Capability.CREATE_EVENTS,
    "calendar.edit": Capability.EDIT_EVENTS,
    "calendar.delete": Capability.DELETE_EVENTS,
    "reports.approve": Capability.MANAGE_REPORT_DEADLINES,
}

REPORT_VISIBLE_STATUSES = frozenset({ReportStatus.submitted, ReportStatus.approved})
REPORT_LOCKED_STATUSES = frozenset({ReportStatus.submitted, ReportStatus.approved, ReportStatus.archived})


@dataclass(frozen=True)
class Principal:
    """The acting user, their role in the current workspace and what they may reach."""

    user_id: uuid.UUID
    role: WorkspaceRole
    current_workspace_id: uuid.UUID
    accessible_workspace_ids: tuple[uuid.UUID, ...]
    capabilities: frozenset[Capability]
    # Parent workspace when the current one is a sub workspace reading through it.
    current_data_source_id: uuid.UUID | None = None

    @property
    def current_workspace_ids(self) -> frozenset[uuid.UUID]:
        """The current workspace plus the workspace its data is read from."""
        return frozenset({self.current_workspace_id, self.current_data_source_id or self.current_workspace_id})

    @property
    def is_owner(self) -> bool:
        return self.role == WorkspaceRole.owner

    @property
    def is_admin_or_owner(self) -> bool:
        return self.role in (WorkspaceRole.admin, WorkspaceRole.owner)

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities


def resolve_capabilities(role: WorkspaceRole, granted_permissions: Iterable[str] | None = None) -> frozenset[Capability]:
    capabilities = set(ROLE_CAPABILITIES.get(role, frozenset()))
    for permission_id in granted_permissions or ():
        capability = PERMISSION_CAPABILITIES.get(permission_id)
        if capability is not None:
            capabilities.add(capability)
    return frozenset(capabilities)


def build_principal(
    *,
    user_id: uuid.UUID,
    role: WorkspaceRole,
    current_workspace_id: uuid.UUID,
    accessible_workspace_ids: Iterable[uuid.UUID] = (),
    granted_permissions: Iterable[str] | None = None,
    current_data_source_id: uuid.UUID | None = None,
) -> Principal:
    # Only owners reach beyond the current workspace.
    if role == WorkspaceRole.owner:
        accessible = [current_workspace_id]
        for workspace_id in accessible_workspace_ids:
            if workspace_id not in accessible:
                accessible.append(workspace_id)
    else:
        accessible = [current_workspace_id]
    return Principal(
        user_id=user_id,
        role=role,
        current_workspace_id=current_workspace_id,
        accessible_workspace_ids=tuple(accessible),
        capabilities=resolve_capabilities(role, granted_permissions),
        current_data_source_id=current_data_source_id,
    )


def can_view_event(event: CalendarEventOut, principal: Principal) -> bool:
    if event.visibility == EventVisibility.public:
        return True
    if event.created_by == principal.user_id:
        return True
    if principal.user_id in event.attendees:
        return True
    return principal.has(Capability.VIEW_ALL_EVENTS)


def _can_modify_event(event: CalendarEventOut, principal: Principal, capability: Capability) -> bool:
    if event.created_by == principal.user_id:
        return True
    if principal.has(capability):
        return True
    return principal.is_admin_or_owner and event.workspace_id in principal.current_workspace_ids


def can_edit_event(event: CalendarEventOut, principal: Principal) -> bool:
    return _can_modify_event(event, principal, Capability.EDIT_EVENTS)


def can_delete_event(event: CalendarEventOut, principal: Principal) -> bool:
    return _can_modify_event(event, principal, Capability.DELETE_EVENTS)


def can_use_visibility(visibility: EventVisibility, principal: Principal) -> bool:
    if visibility != EventVisibility.restricted:
        return True
    return principal.is_admin_or_owner and principal.has(Capability.CREATE_RESTRICTED_EVENTS)


def filter_events(events: Iterable[CalendarEventOut], principal: Principal) -> list[CalendarEventItem]:
    """Keep the events the principal may see, tagged with their edit/delete flags.

    Order of the input is preserved.
    """
    out: list[CalendarEventItem] = []
    for event in events:
        if not can_view_event(event, principal):
            continue
        out.append(
            CalendarEventItem(
                event=event,
                can_view=True,
                can_edit=can_edit_event(event, principal),
                can_delete=can_delete_event(event, principal),
            )
        )
    return out


def can_view_report(report: ReportOut, principal: Principal) -> bool:
    if report.author_id == principal.user_id:
        return True
    if report.status in REPORT_VISIBLE_STATUSES:
        return True
    if principal.has(Capability.MANAGE_REPORT_DEADLINES):
        return True
    return principal.is_admin_or_owner


def can_edit_report(report: ReportOut, principal: Principal) -> bool:
    return report.author_id == principal.user_id or principal.is_admin_or_owner


def can_submit_report(report: ReportOut, principal: Principal) -> bool:
    return report.author_id == principal.user_id and report.status not in REPORT_LOCKED_STATUSES


def filter_reports(
    reports: Iterable[ReportOut],
    principal: Principal,
    *,
    scope: Iterable[uuid.UUID],
) -> list[ReportOut]:
    allowed = set(scope)
    return [r for r in reports if r.workspace_id in allowed and can_view_report(r, principal)]
