"""Chat message persistence operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from hr_chat_worker.db.models.chat_message import ChatMessage


class ChatMessageRepository:
    """Repository for received chat messages."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_google_message_id(self, google_message_id: str) -> ChatMessage | None:
        """Return the recorded row, preferring one already marked processed."""
        statement = (
            select(ChatMessage)
            .where(ChatMessage.google_message_id == google_message_id)
            .order_by(ChatMessage.processed_at.is_(None), ChatMessage.created_at.asc())
            .limit(1)
        )
        return self._session.scalar(statement)

    def list_thread_messages(self, thread_name: str) -> list[ChatMessage]:
        statement = (
            select(ChatMessage)
            .where(ChatMessage.thread_name == thread_name)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        )
        return list(self._session.scalars(statement).all())

    def mark_processed(self, chat_message_id: UUID, processed_at: datetime) -> None:
        statement = (
            update(ChatMessage)
            .where(ChatMessage.id == chat_message_id)
            .values(processed_at=processed_at)
        )
        self._session.execute(statement)

    def add(self, message: ChatMessage) -> ChatMessage:
        self._session.add(message)
        self._session.flush()
        return message
