"""Intent record persistence operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_chat_worker.db.models.intent_record import IntentRecord


class IntentRecordRepository:
    """Repository for chat message classifications."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_chat_message_id(self, chat_message_id: UUID) -> IntentRecord | None:
        statement = (
            select(IntentRecord)
            .where(IntentRecord.chat_message_id == chat_message_id)
            .order_by(IntentRecord.created_at.desc())
            .limit(1)
        )
        return self._session.scalar(statement)

    def add(self, record: IntentRecord) -> IntentRecord:
        self._session.add(record)
        self._session.flush()
        return record
