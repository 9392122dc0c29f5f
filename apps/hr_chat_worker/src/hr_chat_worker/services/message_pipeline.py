"""Orchestration of one normalized chat event through the intake pipeline."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, TypeVar
from uuid import UUID

from hr_chat_worker.application.ports.repositories import (
    ChatMessageRepositoryProtocol,
    IntentRecordRepositoryProtocol,
    SalaryDraftRepositoryProtocol,
    SessionProtocol,
)
from hr_chat_worker.application.schemas.chat_event import ChatEvent
from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    ThreadContext,
)
from hr_chat_worker.application.services.event_enricher import (
    EnrichmentFallback,
    EnrichmentResult,
)
from hr_chat_worker.db.models.chat_message import ChatMessage
from hr_chat_worker.db.models.intent_record import IntentRecord
from hr_chat_worker.domain.errors import TransientInfraError
from hr_chat_worker.domain.value_objects import (
    AuditEventType,
    ChatCategory,
    ClassificationMethod,
)
from hr_chat_worker.services.audit_recorder import AuditRecorder, utc_now
from hr_chat_worker.services.deduplicator import Deduplicator
from hr_chat_worker.services.salary_handler import SalaryHandler
from hr_chat_worker.services.thread_context_loader import ThreadContextLoader

logger = logging.getLogger(__name__)

_Stored = TypeVar("_Stored")


class IntentClassifierProtocol(Protocol):
    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification: ...


class PipelineStatus(enum.StrEnum):
    """Terminal state of one pipeline run."""

    PROCESSED = "processed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True, slots=True)
class PipelineResult:
    status: PipelineStatus
    chat_message_id: UUID | None = None
    category: ChatCategory | None = None
    draft_ids: list[UUID] = field(default_factory=list)


def classification_from_record(record: IntentRecord) -> IntentClassification:
    return IntentClassification(
        category=record.category,
        confidence=record.confidence_score,
        reasoning=record.llm_output or "",
        classification_method=record.classification_method,
        regex_pattern=record.regex_pattern,
    )


class MessagePipeline:
    """Records, classifies and routes a chat event.

    Retryable failures surface as ``TransientInfraError`` and business
    failures as ``PermanentBusinessError``; the caller maps them to the
    delivery outcome.
    """

    def __init__(
        self,
        *,
        deduplicator: Deduplicator,
        enricher: Callable[[ChatEvent], EnrichmentResult],
        chat_message_repository: ChatMessageRepositoryProtocol,
        intent_record_repository: IntentRecordRepositoryProtocol,
        salary_draft_repository: SalaryDraftRepositoryProtocol,
        thread_context_loader: ThreadContextLoader,
        classifier: IntentClassifierProtocol,
        salary_handler: SalaryHandler,
        audit_recorder: AuditRecorder,
        session: SessionProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._deduplicator = deduplicator
        self._enricher = enricher
        self._chat_message_repository = chat_message_repository
        self._intent_record_repository = intent_record_repository
        self._salary_draft_repository = salary_draft_repository
        self._thread_context_loader = thread_context_loader
        self._classifier = classifier
        self._salary_handler = salary_handler
        self._audit_recorder = audit_recorder
        self._session = session
        self._clock = clock

    def process(self, event: ChatEvent) -> PipelineResult:
        """Run one delivery; a redelivery resumes a row left unprocessed.

        A resumed row is read from its stored content and keeps its stored
        intent record and drafts, so a redelivery after a late failure never
        classifies or drafts twice.
        """
        delivery = self._deduplicator.check(event.google_message_id)
        if delivery.duplicate:
            logger.info(
                "duplicate_message_skipped",
                extra={"google_message_id": event.google_message_id},
            )
            return PipelineResult(status=PipelineStatus.DUPLICATE)

        resumed = delivery.pending is not None
        if delivery.pending is not None:
            chat_message = delivery.pending
            event = event.model_copy(
                update={
                    "text": chat_message.content,
                    "thread_name": chat_message.thread_name,
                }
            )
            logger.info(
                "unprocessed_message_resumed",
                extra={
                    "google_message_id": event.google_message_id,
                    "chat_message_id": str(chat_message.id),
                },
            )
        else:
            chat_message, event = self._record(event)

        intent_record, classification = self._classify(
            chat_message, event, resumed=resumed
        )

        draft_ids: list[UUID] = []
        if classification.category == ChatCategory.SALARY:
            draft_ids = self._route_salary(
                chat_message, event, intent_record, classification, resumed=resumed
            )
        else:
            logger.info(
                "non_salary_message_recorded",
                extra={
                    "chat_message_id": str(chat_message.id),
                    "category": classification.category.value,
                },
            )

        self._mark_processed(chat_message.id)
        logger.info(
            "message_processed",
            extra={
                "chat_message_id": str(chat_message.id),
                "category": classification.category.value,
                "draft_count": len(draft_ids),
            },
        )
        return PipelineResult(
            status=PipelineStatus.PROCESSED,
            chat_message_id=chat_message.id,
            category=classification.category,
            draft_ids=draft_ids,
        )

    def _record(self, event: ChatEvent) -> tuple[ChatMessage, ChatEvent]:
        enrichment = self._enricher(event)
        if isinstance(enrichment, EnrichmentFallback):
            logger.info(
                "enrichment_skipped",
                extra={
                    "google_message_id": event.google_message_id,
                    "reason": enrichment.reason,
                },
            )

        chat_message = self._save_chat_message(enrichment.event)
        self._audit_recorder.record(
            event_type=AuditEventType.CHAT_RECEIVED,
            entity_type="chat_message",
            entity_id=str(chat_message.id),
        )
        return chat_message, enrichment.event

    def _classify(
        self, chat_message: ChatMessage, event: ChatEvent, *, resumed: bool
    ) -> tuple[IntentRecord, IntentClassification]:
        if resumed:
            stored = self._load_stored(
                lambda: self._intent_record_repository.get_by_chat_message_id(
                    chat_message.id
                ),
                chat_message,
            )
            if stored is not None:
                return stored, classification_from_record(stored)

        thread_context = self._thread_context_loader.load(
            thread_name=event.thread_name,
            current_message_id=chat_message.id,
        )
        classification = self._classifier.classify(event.text, thread_context)
        intent_record = self._save_intent_record(chat_message, event, classification)
        self._audit_recorder.record(
            event_type=AuditEventType.INTENT_CLASSIFIED,
            entity_type="intent_record",
            entity_id=str(intent_record.id),
            details={
                "category": classification.category.value,
                "classification_method": classification.classification_method.value,
            },
        )
        return intent_record, classification

    def _route_salary(
        self,
        chat_message: ChatMessage,
        event: ChatEvent,
        intent_record: IntentRecord,
        classification: IntentClassification,
        *,
        resumed: bool,
    ) -> list[UUID]:
        existing = (
            self._load_stored(
                lambda: self._salary_draft_repository.list_by_chat_message_id(
                    chat_message.id
                ),
                chat_message,
            )
            if resumed
            else []
        )
        if existing:
            logger.info(
                "existing_drafts_reused",
                extra={
                    "chat_message_id": str(chat_message.id),
                    "draft_count": len(existing),
                },
            )
            return [draft.id for draft in existing]

        handled = self._salary_handler.handle(
            chat_message_id=chat_message.id,
            message_text=event.text,
            intent=classification,
        )
        intent_record.extracted_params = handled.params.model_dump(mode="json")
        return [draft.id for draft in handled.drafts]

    def _load_stored(
        self, load: Callable[[], _Stored], chat_message: ChatMessage
    ) -> _Stored:
        try:
            return load()
        except Exception as exc:
            self._session.rollback()
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Stored pipeline state lookup failed: {exc}",
                details={"chat_message_id": str(chat_message.id)},
            ) from exc

    def _save_chat_message(self, event: ChatEvent) -> ChatMessage:
        try:
            chat_message = self._chat_message_repository.add(
                ChatMessage(
                    space_name=event.space_name,
                    google_message_id=event.google_message_id,
                    sender_user_id=event.sender_user_id,
                    sender_name=event.sender_name,
                    sender_type=event.sender_type.value,
                    content=event.text,
                    formatted_content=event.formatted_text,
                    message_type=event.message_type.value,
                    thread_name=event.thread_name,
                    parent_message_id=event.parent_message_id,
                    mentioned_users=[
                        user.model_dump(mode="json") for user in event.mentioned_users
                    ],
                    annotations=[
                        annotation.model_dump(mode="json", exclude_none=True)
                        for annotation in event.annotations
                    ],
                    attachments=[
                        attachment.model_dump(mode="json", exclude_none=True)
                        for attachment in event.attachments
                    ],
                    is_edited=event.is_edited,
                    is_deleted=event.is_deleted,
                    raw_payload=event.raw_payload,
                    created_at=event.created_at,
                )
            )
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Chat message write failed: {exc}",
                details={"google_message_id": event.google_message_id},
            ) from exc
        return chat_message

    def _save_intent_record(
        self,
        chat_message: ChatMessage,
        event: ChatEvent,
        classification: IntentClassification,
    ) -> IntentRecord:
        from_model = classification.classification_method == ClassificationMethod.AI
        try:
            record = self._intent_record_repository.add(
                IntentRecord(
                    chat_message_id=chat_message.id,
                    category=classification.category,
                    confidence_score=classification.confidence,
                    classification_method=classification.classification_method,
                    regex_pattern=classification.regex_pattern,
                    llm_input=event.text if from_model else None,
                    llm_output=classification.reasoning,
                    extracted_params=None,
                )
            )
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Intent record write failed: {exc}",
                details={"chat_message_id": str(chat_message.id)},
            ) from exc
        return record

    def _mark_processed(self, chat_message_id: UUID) -> None:
        try:
            self._chat_message_repository.mark_processed(
                chat_message_id, self._clock()
            )
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            logger.warning(
                "mark_processed_failed",
                extra={"chat_message_id": str(chat_message_id), "error": str(exc)},
            )
