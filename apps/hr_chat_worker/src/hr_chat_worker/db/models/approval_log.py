"""Approval log ORM model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_chat_worker.db.base import Base, enum_column_type
from hr_chat_worker.domain.value_objects import ActorRole, ApprovalAction, DraftStatus


class ApprovalLog(Base):
    """Append-only record of one draft status transition."""

    __tablename__ = "approval_logs"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    draft_id: Mapped[UUID] = mapped_column(
        ForeignKey("salary_drafts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[ApprovalAction] = mapped_column(
        enum_column_type(ApprovalAction, "approval_action"),
        nullable=False,
    )
    from_status: Mapped[DraftStatus] = mapped_column(
        enum_column_type(DraftStatus, "draft_status"),
        nullable=False,
    )
    to_status: Mapped[DraftStatus] = mapped_column(
        enum_column_type(DraftStatus, "draft_status"),
        nullable=False,
    )
    actor_email: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_role: Mapped[ActorRole] = mapped_column(
        enum_column_type(ActorRole, "actor_role"),
        nullable=False,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
