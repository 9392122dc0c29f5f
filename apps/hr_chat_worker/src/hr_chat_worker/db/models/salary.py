"""Salary history ORM model."""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from hr_chat_worker.db.base import Base


class Salary(Base):
    """Salary breakdown valid from ``effective_from``; open-ended when current."""

    __tablename__ = "salaries"
    __table_args__ = (
        CheckConstraint(
            "total_salary = base_salary + position_allowance + region_allowance"
            " + qualification_allowance + other_allowance",
            name="ck_salaries_total_matches_components",
        ),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    base_salary: Mapped[int] = mapped_column(Integer, nullable=False)
    position_allowance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    region_allowance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qualification_allowance: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    other_allowance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_salary: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
