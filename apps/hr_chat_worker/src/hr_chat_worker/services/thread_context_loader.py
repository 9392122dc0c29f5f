"""Best-effort lookup of the classification that opened a chat thread."""

from __future__ import annotations

import logging
from uuid import UUID

from hr_chat_worker.application.ports.repositories import (
    ChatMessageRepositoryProtocol,
    IntentRecordRepositoryProtocol,
    SessionProtocol,
)
from hr_chat_worker.application.schemas.classification import ThreadContext
from hr_chat_worker.domain.value_objects import ChatCategory

logger = logging.getLogger(__name__)

PARENT_SNIPPET_LENGTH = 100


class ThreadContextLoader:
    """Builds ``ThreadContext`` for thread replies.

    The earliest message of the thread is its parent. Any lookup failure
    yields no context.
    """

    def __init__(
        self,
        *,
        chat_message_repository: ChatMessageRepositoryProtocol,
        intent_record_repository: IntentRecordRepositoryProtocol,
        session: SessionProtocol,
    ) -> None:
        self._chat_message_repository = chat_message_repository
        self._intent_record_repository = intent_record_repository
        self._session = session

    def load(
        self, *, thread_name: str | None, current_message_id: UUID
    ) -> ThreadContext | None:
        if not thread_name:
            return None
        try:
            return self._load(thread_name, current_message_id)
        except Exception as exc:
            self._session.rollback()
            logger.warning(
                "thread_context_lookup_failed",
                extra={"thread_name": thread_name, "error": str(exc)},
            )
            return None

    def _load(self, thread_name: str, current_message_id: UUID) -> ThreadContext | None:
        messages = self._chat_message_repository.list_thread_messages(thread_name)
        if not messages:
            return None

        parent = messages[0]
        if parent.id == current_message_id:
            return None

        intent = self._intent_record_repository.get_by_chat_message_id(parent.id)
        return ThreadContext(
            parent_category=intent.category if intent else ChatCategory.OTHER,
            parent_confidence=intent.confidence_score if intent else 0.0,
            parent_snippet=(parent.content or "")[:PARENT_SNIPPET_LENGTH],
            reply_count=len(messages) - 1,
        )
