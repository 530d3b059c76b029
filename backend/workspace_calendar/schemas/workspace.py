from __future__ import annotations

import uuid

from pydantic import BaseModel

from workspace_calendar.models.enums import WorkspaceType


class WorkspaceOut(BaseModel):
    id: uuid.UUID
    name: str
    workspace_type: WorkspaceType = WorkspaceType.main
    parent_workspace_id: uuid.UUID | None = None
    region_id: uuid.UUID | None = None
    branch_id: uuid.UUID | None = None

    @property
    def data_source_id(self) -> uuid.UUID:
        if self.workspace_type == WorkspaceType.sub and self.parent_workspace_id is not None:
            return self.parent_workspace_id
        return self.id
