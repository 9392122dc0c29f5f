"""Idempotency gate keyed by the chat message resource name."""

from __future__ import annotations

from dataclasses import dataclass

from hr_chat_worker.application.ports.repositories import ChatMessageRepositoryProtocol
from hr_chat_worker.db.models.chat_message import ChatMessage
from hr_chat_worker.domain.errors import TransientInfraError


@dataclass(frozen=True, slots=True)
class DeliveryCheck:
    """What the store already knows about one delivered message.

    ``pending`` is a row recorded by an earlier delivery that failed before
    the message was marked processed.
    """

    duplicate: bool
    pending: ChatMessage | None = None


class Deduplicator:
    """Reports whether a chat message was already processed.

    Two concurrent deliveries of one message may both pass the check; the
    resulting duplicate row is tolerated.
    """

    def __init__(self, *, repository: ChatMessageRepositoryProtocol) -> None:
        self._repository = repository

    def check(self, google_message_id: str) -> DeliveryCheck:
        try:
            recorded = self._repository.get_by_google_message_id(google_message_id)
        except Exception as exc:
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Duplicate check failed: {exc}",
                details={"google_message_id": google_message_id},
            ) from exc

        if recorded is None:
            return DeliveryCheck(duplicate=False)
        if recorded.processed_at is not None:
            return DeliveryCheck(duplicate=True)
        return DeliveryCheck(duplicate=False, pending=recorded)
