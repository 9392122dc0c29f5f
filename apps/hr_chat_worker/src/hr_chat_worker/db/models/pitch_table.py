"""Pitch table ORM model."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_chat_worker.db.base import Base


class PitchTableEntry(Base):
    """Base salary amount for one (grade, step) pair."""

    __tablename__ = "pitch_tables"
    __table_args__ = (
        UniqueConstraint("grade", "step", name="uq_pitch_tables_grade_step"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
