"""Allowance master ORM model."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_chat_worker.db.base import Base, enum_column_type
from hr_chat_worker.domain.value_objects import AllowanceType


class AllowanceMasterEntry(Base):
    """Fixed allowance amount for one (allowance type, code) pair."""

    __tablename__ = "allowance_masters"
    __table_args__ = (
        UniqueConstraint(
            "allowance_type", "code", name="uq_allowance_masters_type_code"
        ),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    allowance_type: Mapped[AllowanceType] = mapped_column(
        enum_column_type(AllowanceType, "allowance_type"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
