from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from workspace_calendar.db import Base
from workspace_calendar.models.enums import DeadlineFrequency, Priority, TemplateStatus


class ReportTemplate(Base):
    __tablename__ = "report_templates"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("workspaces.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[str | None] = mapped_column(String(200))
    status: Mapped[TemplateStatus] = mapped_column(
        Enum(TemplateStatus, name="template_status"), nullable=False, server_default="active"
    )

    # Deadline config; both null when the template carries no recurring deadline.
    deadline_frequency: Mapped[DeadlineFrequency | None] = mapped_column(
        Enum(DeadlineFrequency, name="deadline_frequency")
    )
    deadline_priority: Mapped[str | None] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
