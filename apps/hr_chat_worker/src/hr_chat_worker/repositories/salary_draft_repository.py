"""Salary draft persistence operations."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.salary_draft import SalaryDraft


class SalaryDraftRepository:
    """Repository for salary drafts, their items and approval history."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, draft_id: UUID) -> SalaryDraft | None:
        statement = (
            select(SalaryDraft)
            .options(selectinload(SalaryDraft.items))
            .where(SalaryDraft.id == draft_id)
        )
        return self._session.scalar(statement)

    def get_for_update(self, draft_id: UUID) -> SalaryDraft | None:
        statement = (
            select(SalaryDraft).where(SalaryDraft.id == draft_id).with_for_update()
        )
        return self._session.scalar(statement)

    def list_by_chat_message_id(self, chat_message_id: UUID) -> list[SalaryDraft]:
        statement = (
            select(SalaryDraft)
            .options(selectinload(SalaryDraft.items))
            .where(SalaryDraft.chat_message_id == chat_message_id)
            .order_by(SalaryDraft.created_at.asc(), SalaryDraft.reason.asc())
        )
        return list(self._session.scalars(statement).all())

    def add_all(self, drafts: Sequence[SalaryDraft]) -> list[SalaryDraft]:
        self._session.add_all(drafts)
        self._session.flush()
        return list(drafts)

    def add_approval_log(self, log: ApprovalLog) -> ApprovalLog:
        self._session.add(log)
        self._session.flush()
        return log
