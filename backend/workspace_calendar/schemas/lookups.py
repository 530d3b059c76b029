from __future__ import annotations

import uuid

from pydantic import BaseModel


class UserLookup(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str | None = None
    branch: str | None = None
    department: str | None = None
    region: str | None = None


class TeamLookup(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    department_id: uuid.UUID | None = None


class DepartmentLookup(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    code: str | None = None
