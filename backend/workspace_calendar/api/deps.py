from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workspace_calendar.auth.security import ACCESS_TOKEN_TYPE, decode_token, require_token_type
from workspace_calendar.db import get_db
from workspace_calendar.models.enums import WorkspaceRole
from workspace_calendar.models.user import User
from workspace_calendar.models.workspace import Workspace, WorkspaceMember
from workspace_calendar.schemas.workspace import WorkspaceOut
from workspace_calendar.services.calendar_access import Principal, build_principal
from workspace_calendar.services.calendar_sources import build_sql_sources
from workspace_calendar.services.sources import CalendarSources


http_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
        require_token_type(payload, ACCESS_TOKEN_TYPE)
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return user


async def get_current_principal(
    workspace_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Principal:
    membership = (
        await db.execute(
            select(WorkspaceMember).where(
                WorkspaceMember.workspace_id == workspace_id,
                WorkspaceMember.user_id == user.id,
            )
        )
    ).scalar_one_or_none()
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")

    workspace = (await db.execute(select(Workspace).where(Workspace.id == workspace_id))).scalar_one_or_none()
    if workspace is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    data_source_id = WorkspaceOut.model_validate(workspace, from_attributes=True).data_source_id

    accessible_ids: list[uuid.UUID] = []
    if membership.role == WorkspaceRole.owner:
        accessible_ids = list(
            (
                await db.execute(
                    select(WorkspaceMember.workspace_id)
                    .join(Workspace, Workspace.id == WorkspaceMember.workspace_id)
                    .where(WorkspaceMember.user_id == user.id, WorkspaceMember.role == WorkspaceRole.owner)
                    .order_by(Workspace.created_at, Workspace.name)
                )
            ).scalars().all()
        )

    return build_principal(
        user_id=user.id,
        role=membership.role,
        current_workspace_id=workspace_id,
        accessible_workspace_ids=accessible_ids,
        granted_permissions=membership.permissions,
        current_data_source_id=data_source_id,
    )


def get_calendar_sources() -> CalendarSources:
    return build_sql_sources()
