"""Intent record ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hr_chat_worker.db.base import Base, enum_column_type
from hr_chat_worker.domain.value_objects import ChatCategory, ClassificationMethod


class IntentRecord(Base):
    """Classification outcome attached to one chat message."""

    __tablename__ = "intent_records"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    chat_message_id: Mapped[UUID] = mapped_column(
        ForeignKey("chat_messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[ChatCategory] = mapped_column(
        enum_column_type(ChatCategory, "chat_category"),
        nullable=False,
    )
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    classification_method: Mapped[ClassificationMethod] = mapped_column(
        enum_column_type(ClassificationMethod, "classification_method"),
        nullable=False,
    )
    regex_pattern: Mapped[str | None] = mapped_column(String(64), nullable=True)
    llm_input: Mapped[str | None] = mapped_column(Text, nullable=True)
    llm_output: Mapped[str | None] = mapped_column(Text, nullable=True)
    extracted_params: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
