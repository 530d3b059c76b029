from __future__ import annotations

import uuid
from typing import Iterable

from workspace_calendar.schemas.workspace import WorkspaceOut
from workspace_calendar.services.calendar_access import Principal


def resolve_workspace_scope(
    principal: Principal,
    *,
    include_all_accessible: bool,
    accessible_workspaces: Iterable[WorkspaceOut | uuid.UUID],
) -> list[uuid.UUID]:
    """
    Return the ordered workspace ids one query should read.

    Rules:
    - Only an owner asking for all accessible workspaces, with more than one
      of them, fans out; everyone else reads the current workspace only.
    - Order follows the accessible list, first occurrence wins.
    - An empty accessible list yields an empty scope (nothing to query).
    """
    accessible_ids = _unique_ids(accessible_workspaces)
    if not accessible_ids:
        return []
    if not include_all_accessible or not principal.is_owner or len(accessible_ids) <= 1:
        return [principal.current_workspace_id]
    return accessible_ids


def _unique_ids(workspaces: Iterable[WorkspaceOut | uuid.UUID]) -> list[uuid.UUID]:
    out: list[uuid.UUID] = []
    seen: set[uuid.UUID] = set()
    for workspace in workspaces:
        workspace_id = workspace if isinstance(workspace, uuid.UUID) else workspace.id
        if workspace_id in seen:
            continue
        seen.add(workspace_id)
        out.append(workspace_id)
    return out


def readable_workspace_ids(
    scope: Iterable[uuid.UUID],
    accessible_workspaces: Iterable[WorkspaceOut | uuid.UUID],
) -> frozenset[uuid.UUID]:
    """Scope ids plus the ids their rows are stored under (a sub workspace's parent)."""
    scope_ids = set(scope)
    readable = set(scope_ids)
    for workspace in accessible_workspaces:
        if isinstance(workspace, WorkspaceOut) and workspace.id in scope_ids:
            readable.add(workspace.data_source_id)
    return frozenset(readable)
