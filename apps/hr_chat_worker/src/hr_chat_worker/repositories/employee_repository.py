"""Employee and salary lookups."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_chat_worker.db.models.employee import Employee
from hr_chat_worker.db.models.salary import Salary


class EmployeeRepository:
    """Repository for active employees and their current salary."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_active_by_employee_number(self, employee_number: str) -> Employee | None:
        statement = (
            select(Employee)
            .where(
                Employee.employee_number == employee_number,
                Employee.is_active.is_(True),
            )
            .limit(1)
        )
        return self._session.scalar(statement)

    def get_active_by_name(self, name: str) -> Employee | None:
        statement = (
            select(Employee)
            .where(Employee.name == name, Employee.is_active.is_(True))
            .order_by(Employee.employee_number.asc())
            .limit(1)
        )
        return self._session.scalar(statement)

    def get_current_salary(self, employee_id: UUID) -> Salary | None:
        statement = (
            select(Salary)
            .where(Salary.employee_id == employee_id, Salary.effective_to.is_(None))
            .order_by(Salary.effective_from.desc())
            .limit(1)
        )
        return self._session.scalar(statement)
