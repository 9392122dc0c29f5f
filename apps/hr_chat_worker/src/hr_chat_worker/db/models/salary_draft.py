"""Salary draft and draft item ORM models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_chat_worker.db.base import Base, enum_column_type
from hr_chat_worker.domain.value_objects import ChangeType, DraftStatus, SalaryItemType


class SalaryDraft(Base):
    """Proposed compensation change awaiting approval."""

    __tablename__ = "salary_drafts"
    __table_args__ = (
        Index("ix_salary_drafts_status", "status"),
        Index("ix_salary_drafts_chat_message_id", "chat_message_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id"),
        nullable=False,
        index=True,
    )
    chat_message_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("chat_messages.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[DraftStatus] = mapped_column(
        enum_column_type(DraftStatus, "draft_status"),
        nullable=False,
        default=DraftStatus.DRAFT,
    )
    change_type: Mapped[ChangeType] = mapped_column(
        enum_column_type(ChangeType, "change_type"),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    before_base_salary: Mapped[int] = mapped_column(Integer, nullable=False)
    after_base_salary: Mapped[int] = mapped_column(Integer, nullable=False)
    before_total: Mapped[int] = mapped_column(Integer, nullable=False)
    after_total: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    ai_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    ai_reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    applied_rules: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    items: Mapped[list[SalaryDraftItem]] = relationship(
        "SalaryDraftItem",
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="SalaryDraftItem.position",
    )


class SalaryDraftItem(Base):
    """Before/after amount of one salary component inside a draft."""

    __tablename__ = "salary_draft_items"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    draft_id: Mapped[UUID] = mapped_column(
        ForeignKey("salary_drafts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item_type: Mapped[SalaryItemType] = mapped_column(
        enum_column_type(SalaryItemType, "salary_item_type"),
        nullable=False,
    )
    item_name: Mapped[str] = mapped_column(String(120), nullable=False)
    before_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    after_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_changed: Mapped[bool] = mapped_column(Boolean, nullable=False)

    draft: Mapped[SalaryDraft] = relationship("SalaryDraft", back_populates="items")
